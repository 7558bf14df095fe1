from __future__ import annotations

from pathlib import Path

import pytest

from audit_flattener.domain.errors import InputFormatError, UnsupportedFormatError
from audit_flattener.infrastructure.loaders import load_records, supported_extensions

EXPECTED_RECORDS = 200

CLIXML_SAMPLE = """<Objs Version="1.1.0.1" xmlns="http://schemas.microsoft.com/powershell/2004/04">
  <Obj RefId="0">
    <TN RefId="0"><T>Deserialized.Microsoft.Exchange.Management.SystemConfigurationTasks.AuditRecord</T></TN>
    <Props>
      <Obj N="RecordType" RefId="1">
        <TN RefId="1"><T>Deserialized.Microsoft.Exchange.Management.SystemConfigurationTasks.AuditRecordType</T></TN>
        <ToString>ExchangeAdmin</ToString>
        <I32>1</I32>
      </Obj>
      <DT N="CreationDate">2024-03-01T10:00:00</DT>
      <S N="UserIds">admin@contoso.com</S>
      <S N="Operations">Set-Mailbox</S>
      <S N="AuditData">{"Id":"1","Note":"line_x000D__x000A_break"}</S>
      <I32 N="ResultIndex">1</I32>
      <I32 N="ResultCount">1</I32>
      <S N="Identity">abc-123</S>
      <Nil N="ObjectState" />
    </Props>
  </Obj>
</Objs>
"""


def test_supported_extensions():
    assert supported_extensions() == [".clixml", ".csv", ".xml"]


def test_unsupported_extension_fails_before_reading(tmp_path: Path):
    # The file does not exist; the format check must come first.
    with pytest.raises(UnsupportedFormatError, match=".json"):
        load_records(tmp_path / "audit.json")


def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_records(tmp_path / "missing.csv")


def test_load_clixml_properties(tmp_path: Path):
    path = tmp_path / "audit.xml"
    path.write_text(CLIXML_SAMPLE, encoding="utf-8")

    (record,) = load_records(path)

    assert record.record_type == "ExchangeAdmin"
    assert record.creation_date == "2024-03-01T10:00:00"
    assert record.user_ids == ["admin@contoso.com"]
    assert record.operations == "Set-Mailbox"
    assert record.audit_data == '{"Id":"1","Note":"line\r\nbreak"}'
    assert record.result_index == 1
    assert record.result_count == 1
    assert record.identity == "abc-123"
    assert record.decode_error is None


def test_malformed_clixml_is_input_error(tmp_path: Path):
    path = tmp_path / "audit.clixml"
    path.write_text("<Objs><Obj>", encoding="utf-8")
    with pytest.raises(InputFormatError):
        load_records(path)


def test_csv_without_audit_data_column_is_input_error(tmp_path: Path):
    path = tmp_path / "audit.csv"
    path.write_text("CreationDate,Operations\n2024-01-01,UserLoggedIn\n", encoding="utf-8")
    with pytest.raises(InputFormatError, match="AuditData"):
        load_records(path)


def test_csv_blank_counts_and_multiple_user_ids(tmp_path: Path):
    path = tmp_path / "audit.csv"
    path.write_text(
        'CreationDate,UserIds,Operations,AuditData,ResultIndex,ResultCount,Identity\n'
        '2024-01-01,"a@contoso.com, b@contoso.com",FileAccessed,"{""Id"":""1""}",,,x\n',
        encoding="utf-8-sig",
    )

    (record,) = load_records(path)

    assert record.user_ids == ["a@contoso.com", "b@contoso.com"]
    assert record.result_index is None
    assert record.audit_data == '{"Id":"1"}'


def test_csv_and_clixml_exports_load_identically(generated_csv: Path, generated_clixml: Path):
    from_csv = load_records(generated_csv)
    from_xml = load_records(generated_clixml)

    assert len(from_csv) == EXPECTED_RECORDS
    assert from_csv == from_xml
