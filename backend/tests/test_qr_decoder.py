import io

import pytest
from PIL import Image

from family_budget.services.qr_decoder import (
    DEFAULT_STAGES,
    NOT_FOUND_MESSAGE,
    DecodeStage,
    QrDecoder,
    decode_qr,
)

from conftest import RECEIPT_QR, blank_png, qr_png


def tagged_stages():
    """Default stage names with transforms that just report their position."""
    return [
        DecodeStage(stage.name, lambda image, n=n: f"stage-{n}")
        for n, stage in enumerate(DEFAULT_STAGES, start=1)
    ]


def test_first_successful_stage_wins():
    seen = []

    def decode(tag):
        seen.append(tag)
        return RECEIPT_QR if tag in ("stage-3", "stage-4") else None

    result = QrDecoder(stages=tagged_stages(), decode=decode).decode_bytes(blank_png())

    assert result.success
    assert result.data == RECEIPT_QR
    assert result.method == 3
    assert result.method_name == "Черно-белое пороговое"
    assert seen == ["stage-1", "stage-2", "stage-3"]


def test_failing_stage_does_not_stop_later_ones():
    def broken(image):
        raise RuntimeError("filter exploded")

    stages = [
        DecodeStage("broken", broken),
        DecodeStage("blank", lambda image: "   "),
        DecodeStage("works", lambda image: "ok"),
    ]
    decoder = QrDecoder(stages=stages, decode=lambda tag: RECEIPT_QR if tag == "ok" else tag)

    result = decoder.decode_bytes(blank_png())

    assert result.success
    assert result.method == 3
    assert result.method_name == "works"


def test_no_stage_decodes():
    decoder = QrDecoder(stages=tagged_stages(), decode=lambda tag: None)

    result = decoder.decode_bytes(blank_png())

    assert not result.success
    assert result.data is None
    assert result.error == NOT_FOUND_MESSAGE


def test_clean_qr_code_decodes_with_original_image():
    result = QrDecoder().decode_bytes(qr_png(RECEIPT_QR), "receipt.png")

    assert result.success
    assert result.data == RECEIPT_QR
    assert result.method == 1
    assert result.method_name == "Оригинал"


def test_blank_image_is_not_found():
    result = QrDecoder().decode_bytes(blank_png())

    assert not result.success
    assert result.error == NOT_FOUND_MESSAGE


def test_unreadable_bytes_are_not_found():
    result = QrDecoder().decode_bytes(b"definitely not an image")

    assert not result.success
    assert result.error == NOT_FOUND_MESSAGE


@pytest.mark.parametrize("stage", DEFAULT_STAGES, ids=lambda s: s.name)
def test_stages_keep_image_size(stage):
    image = Image.new("RGB", (64, 48), "gray")

    assert stage.transform(image).size == (64, 48)


def test_real_stages_fall_through_to_threshold():
    """
    OpenCV binarizes internally, so a photo that it reads only after a given
    stage cannot be produced deterministically. The real transforms and the
    real detector run here; only images still in colour are refused.
    """
    def greyscale_only(image):
        return decode_qr(image) if image.mode == "L" else None

    buffer = io.BytesIO()
    Image.open(io.BytesIO(qr_png(RECEIPT_QR))).convert("RGB").save(buffer, format="PNG")

    result = QrDecoder(decode=greyscale_only).decode_bytes(buffer.getvalue())

    assert result.success
    assert result.data == RECEIPT_QR
    assert result.method == 3
    assert result.method_name == "Черно-белое пороговое"


@pytest.mark.parametrize("index", [1, 2, 3, 4, 6])
def test_real_stage_output_stays_decodable(index):
    stage = DEFAULT_STAGES[index - 1]
    with Image.open(io.BytesIO(qr_png(RECEIPT_QR))) as image:
        image.load()
        transformed = stage.transform(image.convert("RGB"))

    assert decode_qr(transformed) == RECEIPT_QR
