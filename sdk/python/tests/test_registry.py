"""Tests for the telcogen session registry."""

import threading

import pytest

from telcogen.errors import DuplicateSessionError, TelcoGenError
from telcogen.registry import CallSession, DataSession, SessionKind, SessionRegistry


class TestSessionRegistryOpen:
    def setup_method(self):
        self.registry = SessionRegistry()

    def test_open_call_returns_entry(self):
        entry = self.registry.open(SessionKind.CALL, "c1", "2125550100", 1000)
        assert isinstance(entry, CallSession)
        assert entry.call_id == "c1"
        assert entry.session_id == "c1"
        assert entry.caller_phone == "2125550100"
        assert entry.start_time == 1000

    def test_open_data_returns_entry(self):
        entry = self.registry.open(SessionKind.DATA, "s1", "2125550101", 2000)
        assert isinstance(entry, DataSession)
        assert entry.subject_number == "2125550101"

    def test_duplicate_id_rejected(self):
        self.registry.open(SessionKind.CALL, "c1", "2125550100", 1000)
        with pytest.raises(DuplicateSessionError) as exc_info:
            self.registry.open(SessionKind.CALL, "c1", "2125550199", 1001)
        assert exc_info.value.kind == "call"
        assert exc_info.value.session_id == "c1"
        assert isinstance(exc_info.value, TelcoGenError)
        # The original entry is untouched
        assert self.registry.close_any(SessionKind.CALL).caller_phone == "2125550100"

    def test_same_id_allowed_across_kinds(self):
        self.registry.open(SessionKind.CALL, "x", "2125550100", 1000)
        self.registry.open(SessionKind.DATA, "x", "2125550100", 1000)
        assert self.registry.count(SessionKind.CALL) == 1
        assert self.registry.count(SessionKind.DATA) == 1

    def test_kind_accepts_plain_string(self):
        self.registry.open("data", "s1", "2125550100", 1000)
        assert self.registry.is_open(SessionKind.DATA, "s1")


class TestSessionRegistryClose:
    def setup_method(self):
        self.registry = SessionRegistry()

    def test_close_any_on_empty_returns_none_twice(self):
        assert self.registry.close_any(SessionKind.CALL) is None
        assert self.registry.close_any(SessionKind.CALL) is None
        assert self.registry.count(SessionKind.CALL) == 0
        assert self.registry.count(SessionKind.DATA) == 0

    def test_close_any_returns_stored_caller(self):
        self.registry.open(SessionKind.CALL, "c1", "3105550142", 1000)
        entry = self.registry.close_any(SessionKind.CALL)
        assert entry is not None
        assert entry.call_id == "c1"
        assert entry.caller_phone == "3105550142"
        assert not self.registry.is_open(SessionKind.CALL, "c1")

    def test_close_any_only_touches_requested_kind(self):
        self.registry.open(SessionKind.DATA, "s1", "2125550100", 1000)
        assert self.registry.close_any(SessionKind.CALL) is None
        assert self.registry.count(SessionKind.DATA) == 1

    def test_close_by_id(self):
        self.registry.open(SessionKind.DATA, "s1", "2125550100", 1000)
        self.registry.open(SessionKind.DATA, "s2", "2125550101", 1000)
        entry = self.registry.close(SessionKind.DATA, "s2")
        assert entry.session_id == "s2"
        assert self.registry.close(SessionKind.DATA, "s2") is None
        assert self.registry.is_open(SessionKind.DATA, "s1")

    def test_clear(self):
        self.registry.open(SessionKind.CALL, "c1", "2125550100", 1000)
        self.registry.open(SessionKind.DATA, "s1", "2125550100", 1000)
        self.registry.clear()
        assert self.registry.count(SessionKind.CALL) == 0
        assert self.registry.count(SessionKind.DATA) == 0


class TestSessionRegistryConcurrency:
    """Each opened entry is handed out by close_any at most once."""

    def test_concurrent_open_and_close(self):
        registry = SessionRegistry()
        workers = 8
        per_worker = 500
        closed: list[str] = []
        closed_lock = threading.Lock()
        barrier = threading.Barrier(workers)

        def work(worker_id: int) -> None:
            barrier.wait()
            local = []
            for i in range(per_worker):
                registry.open(SessionKind.CALL, f"w{worker_id}-{i}", "2125550100", i)
                entry = registry.close_any(SessionKind.CALL)
                if entry is not None:
                    local.append(entry.call_id)
            with closed_lock:
                closed.extend(local)

        threads = [threading.Thread(target=work, args=(w,)) for w in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        # Drain whatever is left
        while True:
            entry = registry.close_any(SessionKind.CALL)
            if entry is None:
                break
            closed.append(entry.call_id)

        assert len(closed) == workers * per_worker
        assert len(set(closed)) == workers * per_worker
