import json

import pytest

from aicat_backend.features.metadata import prioritizer as m
from aicat_backend.features.metadata.software import A1111_NAME
from aicat_backend.features.metadata.tag_groups import TagGroups

PARAMETERS = "portrait\nNegative prompt: ugly\nSteps: 30, Sampler: Euler a, CFG scale: 7, Seed: 99, Model: foo, Size: 512x512"


def test_json_comment_prompt_wins_over_parameters():
    groups = TagGroups({
        "png": {
            "Comment": json.dumps({"prompt": "from json", "steps": 28}),
            "parameters": "from parameters\nSteps: 20, Sampler: Euler, Model: bar",
        }
    })
    ai = m.extract_ai_metadata(groups)
    assert ai["prompt"] == "from json"
    assert ai["steps"] == 28
    # gaps are still filled from the lower-priority block
    assert ai["sampler"] == "Euler"
    assert ai["model"] == "bar"


def test_non_object_comment_is_parsed_as_text():
    groups = TagGroups({"png": {"Comment": "[1, 2, 3]\nSteps: 12"}})
    ai = m.extract_ai_metadata(groups)
    assert ai["steps"] == "12"
    assert ai["comment"] == "[1, 2, 3]\nSteps: 12"


@pytest.mark.parametrize("chunk", ["Parameters", "parameters", "PARAMETERS"])
def test_parameters_chunk_lookup_ignores_case(chunk):
    ai = m.extract_ai_metadata(TagGroups({"png": {chunk: PARAMETERS}}))
    assert ai["prompt"] == "portrait"
    assert ai["negative_prompt"] == "ugly"
    assert ai["model"] == "foo"


def test_description_is_parsed_only_while_prompt_is_missing():
    groups = TagGroups({
        "png": {
            "parameters": "from parameters\nSteps: 20",
            "Description": "from description\nSteps: 40, Seed: 5",
        }
    })
    ai = m.extract_ai_metadata(groups)
    assert ai["prompt"] == "from parameters"
    assert "seed" not in ai
    assert ai["description"] == "from description\nSteps: 40, Seed: 5"

    only_description = TagGroups({"png": {"Description": "sky\nSteps: 40, Seed: 5"}})
    ai = m.extract_ai_metadata(only_description)
    assert ai["prompt"] == "sky"
    assert ai["seed"] == "5"


def test_exif_sources_are_skipped_once_png_gave_a_prompt():
    groups = TagGroups({
        "png": {"parameters": "png prompt\nSteps: 20"},
        "exif": {"UserComment": "exif prompt\nSteps: 30, Sampler: DDIM"},
    })
    ai = m.extract_ai_metadata(groups)
    assert ai["prompt"] == "png prompt"
    assert "sampler" not in ai
    assert "user_comment" not in ai


def test_exif_scan_stops_at_first_source_with_prompt():
    groups = TagGroups({
        "exif": {"ImageDescription": "desc prompt\nSteps: 10"},
        "iptc": {"Caption-Abstract": "iptc prompt\nSteps: 99, Seed: 3"},
    })
    ai = m.extract_ai_metadata(groups)
    assert ai["prompt"] == "desc prompt"
    assert ai["steps"] == "10"
    assert "seed" not in ai


def test_exif_scan_continues_when_a_source_has_no_prompt():
    groups = TagGroups({
        "exif": {"UserComment": "Steps: 20, Sampler: Euler"},
        "xmp": {"Parameters": "xmp prompt\nSteps: 50, Seed: 8"},
    })
    ai = m.extract_ai_metadata(groups)
    assert ai["steps"] == "20"
    assert ai["sampler"] == "Euler"
    assert ai["prompt"] == "xmp prompt"
    assert ai["seed"] == "8"


def test_only_the_user_comment_is_kept_when_nothing_matches():
    groups = TagGroups({
        "exif": {"UserComment": "random camera note", "ImageDescription": "holiday"},
        "iptc": {"Caption": "beach"},
    })
    assert m.extract_ai_metadata(groups) == {"user_comment": "random camera note"}


def test_raw_png_fields_are_copied_for_display():
    groups = TagGroups({"png": {"Description": "a bare prompt", "Comment": "note", "Software": "InvokeAI 3.1"}})
    ai = m.extract_ai_metadata(groups)
    assert ai["description"] == "a bare prompt"
    assert ai["comment"] == "note"
    assert ai["software"] == "InvokeAI"
    assert "prompt" not in ai


def test_no_sources_means_no_ai_record():
    groups = TagGroups({"exif": {"Make": "Canon"}, "file": {"ImageWidth": 10, "ImageHeight": 20}})
    assert m.extract_ai_metadata(groups) is None
    out = m.build_parsed_metadata(groups)
    assert out == {"camera": "Canon", "width": 10, "height": 20}


def test_standard_fields_come_from_exif_and_file_groups():
    groups = TagGroups({
        "exif": {
            "Make": "Canon",
            "Model": "EOS R5",
            "ModifyDate": "2024:05:01 10:00:00",
            "Software": "AUTOMATIC1111",
            "Artist": "someone",
        },
        "file": {"ImageWidth": 8192, "ImageHeight": 5464},
    })
    assert m.extract_standard_metadata(groups) == {
        "camera": "Canon",
        "camera_model": "EOS R5",
        "date_taken": "2024:05:01 10:00:00",
        "software": A1111_NAME,
        "artist": "someone",
        "width": 8192,
        "height": 5464,
    }


def test_size_backfill_when_dimensions_are_missing():
    groups = TagGroups({"png": {"parameters": "p\nSteps: 20, Size: 512x768"}})
    out = m.build_parsed_metadata(groups)
    assert out["width"] == 512
    assert out["height"] == 768
    assert out["ai"]["size"] == "512x768"


def test_size_backfill_never_overrides_existing_dimensions():
    groups = TagGroups({
        "png": {"parameters": "p\nSteps: 20, Size: 512x768"},
        "file": {"ImageWidth": 1024, "ImageHeight": 1536},
    })
    out = m.build_parsed_metadata(groups)
    assert (out["width"], out["height"]) == (1024, 1536)


def test_size_backfill_skipped_when_only_one_dimension_is_known():
    groups = TagGroups({
        "png": {"parameters": "p\nSteps: 20, Size: 512x768"},
        "file": {"ImageWidth": 1024},
    })
    out = m.build_parsed_metadata(groups)
    assert out["width"] == 1024
    assert "height" not in out


def test_parse_size():
    assert m.parse_size("512x768") == (512, 768)
    assert m.parse_size(" 64 X 32 ") == (64, 32)
    assert m.parse_size("512") is None
    assert m.parse_size(None) is None
