"""Session state containers."""

from datetime import datetime

from conftest import make_payload
from strategy_lab.memory_manager import GREETING, ChatLog, ImageHistoryManager, KeywordExplorerState
from strategy_lab.models import ImageHistoryEntry, KeywordQuery, KeywordResult


def _result(keyword, volume=1000):
    return KeywordResult(keyword=keyword, location="US", **make_payload(volume=volume))


def _entry(entry_id, url):
    return ImageHistoryEntry(id=entry_id, url=url, prompt=f"prompt {entry_id}", timestamp=datetime(2026, 1, 1))


class TestKeywordExplorerState:
    def test_latest_request_applies(self):
        state = KeywordExplorerState()
        token = state.begin(KeywordQuery.create("crm", "US"))

        assert state.loading is True
        assert state.apply_result(token, _result("crm")) is True
        assert state.result.keyword == "crm"
        assert state.loading is False

    def test_stale_result_discarded(self):
        state = KeywordExplorerState()
        old = state.begin(KeywordQuery.create("crm", "US"))
        new = state.begin(KeywordQuery.create("erp", "US"))

        assert state.apply_result(new, _result("erp")) is True
        assert state.apply_result(old, _result("crm")) is False
        assert state.result.keyword == "erp"

    def test_stale_tips_and_error_discarded(self):
        state = KeywordExplorerState()
        old = state.begin(KeywordQuery.create("crm", "US"))
        state.begin(KeywordQuery.create("erp", "US"))

        assert state.apply_tips(old, "old tips") is False
        assert state.apply_error(old, "old error") is False
        assert state.tips is None
        assert state.error is None

    def test_tips_independent_of_result_order(self):
        state = KeywordExplorerState()
        token = state.begin(KeywordQuery.create("crm", "US"))

        state.apply_tips(token, "tips first")
        state.apply_result(token, _result("crm"))

        assert state.tips == "tips first"
        assert state.result is not None

    def test_begin_clears_previous_tips_and_error(self):
        state = KeywordExplorerState()
        token = state.begin(KeywordQuery.create("crm", "US"))
        state.apply_tips(token, "tips")
        state.apply_error(token, "failed")

        state.begin(KeywordQuery.create("erp", "US"))

        assert state.tips is None
        assert state.error is None

    def test_reset_invalidates_in_flight_request(self):
        state = KeywordExplorerState()
        token = state.begin(KeywordQuery.create("crm", "US"))

        state.reset()

        assert state.apply_result(token, _result("crm")) is False
        assert state.result is None
        assert state.query is None


class TestImageHistoryManager:
    def test_upload_does_not_create_history(self):
        studio = ImageHistoryManager()

        studio.load_upload("data:image/png;base64,AAAA")

        assert studio.current_image == "data:image/png;base64,AAAA"
        assert studio.entries == []

    def test_record_edit_prepends(self):
        studio = ImageHistoryManager()
        studio.record_edit(_entry("1", "data:image/png;base64,AAAA"))
        studio.record_edit(_entry("2", "data:image/png;base64,BBBB"))

        assert [e.id for e in studio.entries] == ["2", "1"]
        assert studio.current_image == "data:image/png;base64,BBBB"

    def test_select_restores_entry(self):
        studio = ImageHistoryManager()
        studio.record_edit(_entry("1", "data:image/png;base64,AAAA"))
        studio.record_edit(_entry("2", "data:image/png;base64,BBBB"))

        assert studio.select("1") is True
        assert studio.current_image == "data:image/png;base64,AAAA"
        assert len(studio.entries) == 2

    def test_select_unknown(self):
        studio = ImageHistoryManager()

        assert studio.select("missing") is False


class TestChatLog:
    def test_starts_with_greeting(self):
        assert ChatLog().messages == [GREETING]

    def test_send_cycle(self):
        log = ChatLog()

        assert log.begin_send("hello") is True
        assert log.sending is True
        assert log.begin_send("again") is False

        log.finish_send("hi there")

        assert [m.text for m in log.messages][1:] == ["hello", "hi there"]
        assert log.sending is False
