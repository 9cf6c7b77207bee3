import os

# Keep test logging on the console, never ship it to Loki
os.environ["LOKI_URL"] = ""

import pytest
from unittest.mock import AsyncMock

from utils.log_utils import LogUtil
from database.flow_db import FlowDB
from database.session_db import SessionDB
from services.messenger_service import MessengerService
from services.rate_limit_service import RateLimitService
from services.template_builder_service import TemplateBuilderService
from services.conversation_service import ConversationService


@pytest.fixture
def log_util():
    return LogUtil(logger_name="messenger_flow_bot_tests")


@pytest.fixture
def flow_document():
    """Two-node flow: A offers a "Next" button leading to B."""
    return {
        "messages": [
            {
                "id": "A",
                "type": "messenger",
                "label": "Start",
                "items": [
                    {
                        "id": "A-item",
                        "type": "messengerTextVue",
                        "text": "Hi",
                        "buttons": [{"id": "b1", "text": "Next"}]
                    }
                ]
            },
            {
                "id": "B",
                "type": "messenger",
                "label": "End",
                "items": [
                    {"id": "B-item", "type": "messengerTextVue", "text": "Bye"}
                ]
            }
        ],
        "elements": {
            "edges": [
                {"id": "e1", "source": "b1", "target": "B"}
            ]
        }
    }


@pytest.fixture
def flow_db(log_util, flow_document):
    db = FlowDB(log_util=log_util)
    db.load_from_dict(flow_document)
    return db


@pytest.fixture
def session_db(log_util, flow_db):
    return SessionDB(log_util=log_util, flow_db=flow_db)


@pytest.fixture
def mock_messenger():
    """Stand-in for the Send API client; every coroutine method is an AsyncMock."""
    messenger = AsyncMock(spec=MessengerService)
    messenger.mark_seen.return_value = True
    messenger.typing_on.return_value = True
    messenger.typing_off.return_value = True
    messenger.send_template.return_value = {"recipient_id": "user-1", "message_id": "mid.1"}
    messenger.send_text.return_value = {"recipient_id": "user-1", "message_id": "mid.2"}
    return messenger


@pytest.fixture
def conversation_service(log_util, flow_db, session_db, mock_messenger):
    return ConversationService(
        log_util=log_util,
        flow_db=flow_db,
        session_db=session_db,
        rate_limit_service=RateLimitService(log_util=log_util),
        template_builder_service=TemplateBuilderService(log_util=log_util),
        messenger_service=mock_messenger
    )
