import pytest

from src.domain.services.response_normalizer import (
    EXTRACTORS,
    extract_edited_image_url,
    from_message_list,
    from_result,
)

URL = "https://x/y.png"


@pytest.mark.parametrize(
    "body",
    [
        {"message": [{"image": URL}]},
        {"message": {"image": URL}},
        {"image": URL},
        {"edited_image_url": URL},
        {"result": URL},
        {"result": {"image": URL}},
    ],
    ids=["message-list", "message-object", "image", "edited_image_url", "result-string", "result-object"],
)
def test_every_known_shape_yields_the_same_url(body):
    assert extract_edited_image_url(body) == URL


@pytest.mark.parametrize(
    "body",
    [
        {"status": "ok"},
        {"message": None},
        {"message": []},
        {"message": [{"text": "I cannot edit this image"}]},
        {"message": [{"image": 42}]},
        {"image": ""},
        {"image": "   "},
        {"result": {"url": URL}},
        None,
        [],
        "https://x/y.png",
    ],
)
def test_unrecognized_shapes_yield_none(body):
    assert extract_edited_image_url(body) is None


def test_first_matching_shape_wins():
    body = {"message": [{"image": "https://first"}], "image": "https://third", "result": "https://fifth"}
    assert extract_edited_image_url(body) == "https://first"


def test_later_extractor_used_when_earlier_shape_is_empty():
    body = {"message": [{"image": ""}], "edited_image_url": URL}
    assert extract_edited_image_url(body) == URL


def test_extractor_order():
    assert EXTRACTORS[0] is from_message_list
    assert EXTRACTORS[-1] is from_result


def test_custom_extractor_list():
    assert extract_edited_image_url({"image": URL}, extractors=(from_result,)) is None
