"""Tests for speaker statistics, summaries, hallucination filtering and relabeling."""

from domain.models import DiarizationResult, DiarizeSegment
from post_processing import (
    apply_speaker_labels, compute_speaker_statistics, extract_keywords,
    generate_summaries, is_hallucination, rename_speaker, split_sentences,
)


def seg(i, speaker, start, end, text=""):
    return DiarizeSegment(id=f"seg-{i}", speaker_id=speaker, start_ms=start, end_ms=end, text=text)


SEGMENTS = [
    seg(0, "SPEAKER_00", 0, 3000, "Buenos dias a todos. Hoy revisamos el presupuesto trimestral."),
    seg(1, "SPEAKER_01", 3000, 9000, "Gracias. El presupuesto de marketing subio bastante este trimestre."),
    seg(2, "SPEAKER_00", 9000, 11000, "De acuerdo"),
    seg(3, "SPEAKER_02", 11000, 12000, ""),
]


class TestSpeakerStatistics:
    def test_totals_per_speaker(self):
        stats = {s.speaker_id: s for s in compute_speaker_statistics(SEGMENTS)}
        assert stats["SPEAKER_00"].talk_time_ms == 5000
        assert stats["SPEAKER_00"].turns == 2
        assert stats["SPEAKER_00"].word_count == 11
        assert stats["SPEAKER_02"].word_count == 0

    def test_sorted_by_talk_time(self):
        ids = [s.speaker_id for s in compute_speaker_statistics(SEGMENTS)]
        assert ids == ["SPEAKER_01", "SPEAKER_00", "SPEAKER_02"]

    def test_talk_time_adds_up(self):
        stats = compute_speaker_statistics(SEGMENTS)
        assert sum(s.talk_time_ms for s in stats) == sum(s.end_ms - s.start_ms for s in SEGMENTS)

    def test_empty(self):
        assert compute_speaker_statistics([]) == []


class TestSummaries:
    def test_split_sentences_drops_short_fragments(self):
        assert split_sentences("Si. Claro que si, lo vemos manana! Ok?") == ["Claro que si, lo vemos manana"]

    def test_keywords_skip_stopwords_and_short_words(self):
        text = "el presupuesto y la campana presupuesto para la campana del presupuesto en mayo"
        assert extract_keywords(text) == ["presupuesto", "campana", "mayo"]

    def test_keywords_are_capped(self):
        text = "alpha beta gamma delta epsilon zeta eta"
        assert extract_keywords(text) == ["alpha", "beta", "gamma", "delta", "epsilon"]

    def test_summary_per_speaker_with_text(self):
        summaries = {s.speaker_id: s for s in generate_summaries(SEGMENTS)}
        assert set(summaries) == {"SPEAKER_00", "SPEAKER_01"}

    def test_headline_is_first_sentence(self):
        summary = next(s for s in generate_summaries(SEGMENTS) if s.speaker_id == "SPEAKER_01")
        assert summary.headline == "El presupuesto de marketing subio bastante este trimestre"

    def test_bullets_ranked_by_word_count(self):
        summary = next(s for s in generate_summaries(SEGMENTS) if s.speaker_id == "SPEAKER_00")
        assert summary.bullet_points == (
            "Hoy revisamos el presupuesto trimestral",
            "Buenos dias a todos",
        )
        assert summary.headline == "Buenos dias a todos"

    def test_headline_falls_back_to_raw_text(self):
        summaries = generate_summaries([seg(0, "SPEAKER_00", 0, 1000, "Vale")])
        assert summaries[0].headline == "Vale"
        assert summaries[0].bullet_points == ()

    def test_headline_is_truncated(self):
        long_sentence = "palabra " * 40
        summary = generate_summaries([seg(0, "SPEAKER_00", 0, 1000, long_sentence)])[0]
        assert len(summary.headline) == 100


class TestHallucination:
    def test_repeated_word(self):
        assert is_hallucination("gracias gracias gracias gracias gracias")

    def test_repeated_trigram(self):
        assert is_hallucination("thank you for watching thank you for watching thank you for watching")

    def test_normal_speech(self):
        assert not is_hallucination("the budget review is scheduled for next monday morning")

    def test_short_text_is_never_flagged(self):
        assert not is_hallucination("")
        assert not is_hallucination("si si si si")


class TestRelabeling:
    def result(self):
        return DiarizationResult(
            segments=tuple(SEGMENTS),
            speaker_stats=tuple(compute_speaker_statistics(SEGMENTS)),
            participant_summaries=tuple(generate_summaries(SEGMENTS)),
        )

    def test_rename_touches_every_collection(self):
        renamed = rename_speaker(self.result(), "SPEAKER_00", "Ana")
        assert [s.speaker_id for s in renamed.segments] == ["Ana", "SPEAKER_01", "Ana", "SPEAKER_02"]
        assert "Ana" in {s.speaker_id for s in renamed.speaker_stats}
        assert "Ana" in {s.speaker_id for s in renamed.participant_summaries}
        assert "SPEAKER_00" not in {s.speaker_id for s in renamed.speaker_stats}

    def test_rename_leaves_input_untouched(self):
        original = self.result()
        rename_speaker(original, "SPEAKER_00", "Ana")
        assert original.segments[0].speaker_id == "SPEAKER_00"

    def test_unknown_speaker_is_a_no_op(self):
        original = self.result()
        assert rename_speaker(original, "SPEAKER_09", "Nadie") == original

    def test_apply_labels_maps_several_speakers(self):
        renamed = apply_speaker_labels(self.result(), {"SPEAKER_00": "Ana", "SPEAKER_01": "Luis"})
        assert [s.speaker_id for s in renamed.speaker_stats] == ["Luis", "Ana", "SPEAKER_02"]
        assert renamed.segments[1].text == SEGMENTS[1].text
