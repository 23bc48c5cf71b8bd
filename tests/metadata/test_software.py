import pytest

from aicat_backend.features.metadata.software import A1111_NAME, INVOKEAI_NAME, normalize_software


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("AUTOMATIC1111", A1111_NAME),
        ("stable-diffusion-webui (automatic1111) v1.9", A1111_NAME),
        ("A1111", A1111_NAME),
        ("InvokeAI 3.4.0", INVOKEAI_NAME),
        ("NovelAI", "NovelAI"),
        ("Adobe Photoshop 25.0", "Adobe Photoshop 25.0"),
    ],
)
def test_normalize_software_aliases(raw, expected):
    assert normalize_software(raw) == expected


def test_normalize_software_passes_empty_values_through():
    assert normalize_software(None) is None
    assert normalize_software("") == ""


@pytest.mark.parametrize("raw", ["AUTOMATIC1111", "invokeai", "ComfyUI", A1111_NAME, INVOKEAI_NAME, ""])
def test_normalize_software_is_idempotent(raw):
    once = normalize_software(raw)
    assert normalize_software(once) == once
