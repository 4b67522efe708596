import json

from models import HistoryEntry, WritingSession
from services.export import export_csv, export_json


def test_export_csv_header_and_rows() -> None:
    history = [HistoryEntry(value="a", time=0), HistoryEntry(value="ab", time=50)]
    assert export_csv(history) == 'time,value\n0,"a"\n50,"ab"'


def test_export_csv_escapes_quotes_and_newlines() -> None:
    history = [HistoryEntry(value='she said "hi"\nthen\r\nleft', time=7)]
    lines = export_csv(history).split("\n")
    assert lines == ["time,value", '7,"she said ""hi""\\nthen\\nleft"']


def test_export_csv_empty_history() -> None:
    assert export_csv([]) == ""


def test_export_json_shape() -> None:
    session = WritingSession(
        id="exp",
        history=[HistoryEntry(value="a", time=0), HistoryEntry(value="", time=800)],
    )
    dumped = export_json(session)
    assert dumped["history"] == [{"value": "a", "time": 0}, {"value": "", "time": 800}]
    assert dumped["analysis"]["deletions"] == 1
    assert dumped["analysis"]["pauses"] == 1
    # Must be JSON-serializable as-is.
    assert json.loads(json.dumps(dumped)) == dumped


def test_export_json_empty_session() -> None:
    assert export_json(WritingSession(id="empty")) == {"history": [], "analysis": None}
