import numpy as np

from tapscript.modules.ocr import engine as engine_module
from tapscript.modules.ocr.engine import PaddleTextDetector, ocr


class _FakePaddle:
    def __init__(self, texts, scores):
        self.texts = texts
        self.scores = scores
        self.calls = 0

    def predict(self, image):
        self.calls += 1
        polys = [[(0, 0), (10, 0), (10, 5), (0, 5)] for _ in self.texts]
        return [{"rec_texts": self.texts, "rec_scores": self.scores, "rec_polys": polys}]


class _EmptyPaddle:
    def predict(self, image):
        return []


def test_ocr_filters_low_confidence():
    fake = _FakePaddle(["体力", "45", "noise"], [0.9, 0.8, 0.2])

    result = ocr(np.zeros((10, 10, 3), dtype=np.uint8), min_confidence=0.5, engine=fake)

    assert [b.text for b in result.boxes] == ["体力", "45"]
    assert result.text == "体力\n45"
    assert result.find("45").box[1] == (10, 0)


def test_detect_text_empty_when_nothing_found():
    detector = PaddleTextDetector(engine=_EmptyPaddle())
    assert detector.detect_text(np.zeros((10, 10, 3), dtype=np.uint8)) == ""


def test_detector_uses_lazy_singleton(monkeypatch):
    fake = _FakePaddle(["20"], [0.99])
    monkeypatch.setattr(engine_module, "_ocr_instance", fake)

    text = PaddleTextDetector().detect_text(np.zeros((10, 10, 3), dtype=np.uint8))

    assert text == "20"
    assert fake.calls == 1
    assert engine_module.get_ocr_engine() is fake
