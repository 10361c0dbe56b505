"""Shared fixtures: a fake PyMySQL connection and small test images."""

import numpy as np
import pytest


class FakeCursor:
    """Records executed SQL and replays queued fetch results."""

    def __init__(self):
        self.executed = []
        self.fetchone_results = []
        self.fetchall_results = []
        self.rowcount = 0
        self.raise_on_execute = None
        self.closed = False

    def execute(self, sql, params=None):
        if self.raise_on_execute is not None:
            raise self.raise_on_execute
        self.executed.append((" ".join(sql.split()), params))

    def fetchone(self):
        if self.fetchone_results:
            return self.fetchone_results.pop(0)
        return None

    def fetchall(self):
        if self.fetchall_results:
            return self.fetchall_results.pop(0)
        return ()

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self):
        self.cursor_obj = FakeCursor()
        self.commits = 0
        self.rollbacks = 0
        self.closed = False

    def cursor(self):
        return self.cursor_obj

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed = True


@pytest.fixture
def fake_conn():
    return FakeConnection()


@pytest.fixture
def checkerboard():
    """64x64 BGR checkerboard with 8px tiles: sharp edges everywhere."""
    rows, cols = np.indices((64, 64))
    tile = (rows // 8 + cols // 8) % 2
    gray = (tile * 255).astype(np.uint8)
    return np.stack([gray, gray, gray], axis=-1)


@pytest.fixture
def flat_image():
    """64x64 uniform gray BGR image: no edges at all."""
    return np.full((64, 64, 3), 128, dtype=np.uint8)
