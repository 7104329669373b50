import pytest

from tsqlshell import Database
from tsqlshell.lines import LineStatus


class ScriptedSource:
    """Line source fed from a list of lines or (text, LineStatus) pairs."""

    def __init__(self, lines):
        self.events = [
            item if isinstance(item, tuple) else (item, LineStatus.NORMAL)
            for item in lines
        ]
        self.reads = 0

    def read_line(self):
        self.reads += 1
        if not self.events:
            return "", LineStatus.EOF
        return self.events.pop(0)

    def close(self):
        pass


@pytest.fixture
def db(tmp_path):
    database = Database.from_url(f"sqlite:///{tmp_path / 'test.db'}")
    yield database
    database.close()
