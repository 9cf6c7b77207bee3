import pytest

from models.flow_data import FlowNode
from services.template_builder_service import (
    TemplateBuilderService,
    NOT_CONFIGURED_MESSAGE,
    UNSUPPORTED_ITEM_MESSAGE,
    BUILD_ERROR_MESSAGE,
)


@pytest.fixture
def builder(log_util):
    return TemplateBuilderService(log_util=log_util)


def _node(*items):
    return FlowNode.model_validate({"id": "n1", "type": "messenger", "label": "n1", "items": list(items)})


def test_node_without_items(builder):
    result = builder.build(_node())

    assert result.template.template_type == "text"
    assert result.template.text == NOT_CONFIGURED_MESSAGE
    assert not result.is_fallback


def test_plain_text(builder):
    result = builder.build(_node({"type": "messengerTextVue", "text": "Bye"}))

    assert result.template.template_type == "text"
    assert result.template.text == "Bye"
    assert result.template.buttons is None


def test_text_truncated_to_2000_characters(builder):
    result = builder.build(_node({"type": "messengerTextVue", "text": "x" * 2500}))

    assert len(result.template.text) == 2000


def test_button_template(builder):
    result = builder.build(_node({
        "type": "messengerTextVue",
        "text": "Hi",
        "buttons": [{"id": "b1", "text": "Next"}]
    }))

    template = result.template
    assert template.template_type == "button"
    assert template.text == "Hi"
    assert len(template.buttons) == 1
    assert template.buttons[0].type == "postback"
    assert template.buttons[0].title == "Next"
    assert template.buttons[0].payload == "b1"


def test_button_titles_truncated_and_count_capped(builder):
    buttons = [{"id": f"b{i}", "text": "t" * 30} for i in range(5)]
    result = builder.build(_node({"type": "messengerTextVue", "text": "Pick", "buttons": buttons}))

    template = result.template
    assert len(template.buttons) == 3
    assert all(len(button.title) == 20 for button in template.buttons)
    assert [button.payload for button in template.buttons] == ["b0", "b1", "b2"]


def test_only_first_item_is_used(builder):
    result = builder.build(_node(
        {"type": "messengerTextVue", "text": "first"},
        {"type": "messengerTextVue", "text": "second"}
    ))

    assert result.template.text == "first"


def test_video_with_direct_url(builder):
    result = builder.build(_node({"type": "messengerVideoVue", "video_url": "https://cdn.example.com/v.mp4"}))

    template = result.template
    assert template.template_type == "media"
    assert template.attachment.type == "video"
    assert template.attachment.payload.url == "https://cdn.example.com/v.mp4"


def test_video_with_link_only(builder):
    result = builder.build(_node({"type": "messengerVideoVue", "link": "https://example.com/watch", "number": "Episode 3"}))

    template = result.template
    assert template.template_type == "generic"
    assert len(template.elements) == 1
    card = template.elements[0]
    assert card.title == "Episode 3"
    assert card.subtitle == "Click to watch"
    assert card.default_action.type == "web_url"
    assert card.default_action.url == "https://example.com/watch"
    assert len(card.buttons) == 1
    assert card.buttons[0].type == "web_url"
    assert card.buttons[0].url == "https://example.com/watch"


def test_video_link_without_number_uses_default_title(builder):
    result = builder.build(_node({"type": "messengerVideoVue", "link": "https://example.com/watch"}))

    assert result.template.elements[0].title == "Video"


def test_video_url_preferred_over_link(builder):
    result = builder.build(_node({
        "type": "messengerVideoVue",
        "video_url": "https://cdn.example.com/v.mp4",
        "link": "https://example.com/watch"
    }))

    assert result.template.template_type == "media"


@pytest.mark.parametrize("item", [
    {"type": "messengerVideoVue"},
    {"type": "messengerImageVue", "text": "picture"},
])
def test_unsupported_items(builder, item):
    result = builder.build(_node(item))

    assert result.template.template_type == "text"
    assert result.template.text == UNSUPPORTED_ITEM_MESSAGE
    assert not result.is_fallback


def test_construction_failure_becomes_error_template(builder):
    result = builder.build(_node({
        "type": "messengerTextVue",
        "text": "Pick",
        "buttons": [{"id": "b1"}]
    }))

    assert result.is_fallback
    assert "missing a title" in result.error
    assert result.template.template_type == "text"
    assert result.template.text == BUILD_ERROR_MESSAGE


def test_unexpected_failure_never_propagates(builder, mocker):
    mocker.patch.object(builder, "_build_template", side_effect=RuntimeError("boom"))

    result = builder.build(_node({"type": "messengerTextVue", "text": "Hi"}))

    assert result.error == "boom"
    assert result.template.text == BUILD_ERROR_MESSAGE
