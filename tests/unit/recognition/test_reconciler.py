"""Tests for transcript reconciliation."""

from voicepace.recognition.reconciler import TranscriptReconciler, apply
from voicepace.recognition.types import CorrectionMode, InboundFragment


def _fragment(text, mode=CorrectionMode.NONE, **kwargs):
    return InboundFragment(words=(text,), correction_mode=mode, **kwargs)


class TestApply:
    def test_append_confirms_provisional(self):
        assert apply(_fragment("界", CorrectionMode.APPEND), "你好", "你好世") == ("你好世", "你好世界")

    def test_replace_keeps_stable(self):
        new_stable, new_provisional = apply(_fragment("吗", CorrectionMode.REPLACE), "你好", "你好世")
        assert new_stable == "你好"
        assert new_provisional == "你好吗"

    def test_plain_fragment_extends_stable(self):
        assert apply(_fragment("世界"), "你好", "") == ("你好世界", "")

    def test_plain_fragments_never_shrink_stable(self):
        stable, provisional = "", ""
        lengths = []
        for text in ["今天", "", "天气", "很", "", "好。"]:
            stable, provisional = apply(_fragment(text), stable, provisional)
            lengths.append(len(stable))
        assert lengths == sorted(lengths)
        assert stable == "今天天气很好。"

    def test_replace_after_append(self):
        stable, provisional = apply(_fragment("你好", CorrectionMode.APPEND), "", "")
        stable, provisional = apply(_fragment("你们", CorrectionMode.REPLACE), stable, provisional)
        assert (stable, provisional) == ("", "你们")


class TestTranscriptReconciler:
    def test_plain_mode_exposes_stable(self):
        reconciler = TranscriptReconciler()
        assert reconciler.update(_fragment("你好")) == "你好"
        assert reconciler.update(_fragment("世界")) == "你好世界"
        assert reconciler.dynamic_correction is False
        assert reconciler.fragments_applied == 2

    def test_dynamic_mode_exposes_provisional(self):
        reconciler = TranscriptReconciler()
        reconciler.update(_fragment("你好", CorrectionMode.APPEND))
        assert reconciler.update(_fragment("你好世", CorrectionMode.REPLACE)) == "你好世"
        assert reconciler.update(_fragment("界", CorrectionMode.APPEND)) == "你好世界"
        assert reconciler.stable == "你好世"
        assert reconciler.dynamic_correction is True

    def test_append_after_plain_fragments_keeps_text(self):
        reconciler = TranscriptReconciler()
        shown = [
            reconciler.update(_fragment("你好")),
            reconciler.update(_fragment("吗", CorrectionMode.APPEND)),
            reconciler.update(_fragment("呢", CorrectionMode.REPLACE)),
        ]
        assert shown == ["你好", "你好吗", "你好呢"]
        assert len(shown[1]) >= len(shown[0])
        assert reconciler.stable == "你好"

    def test_fragment_without_result_is_ignored(self):
        reconciler = TranscriptReconciler()
        reconciler.update(_fragment("你好"))
        assert reconciler.update(InboundFragment(has_result=False)) == "你好"
        assert reconciler.fragments_applied == 1

    def test_reset(self):
        reconciler = TranscriptReconciler()
        reconciler.update(_fragment("你好", CorrectionMode.APPEND))
        reconciler.reset()
        assert reconciler.text == ""
        assert reconciler.provisional == ""
        assert reconciler.dynamic_correction is False
