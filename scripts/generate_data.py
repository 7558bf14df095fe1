"""
Synthetic audit export generator for the audit flattener.

Writes deterministic pseudo-random Unified Audit Log records either as an
`Export-Csv` style CSV or as an `Export-Clixml` style object stream. Optional
knobs inject truncated AuditData payloads and per-record shape variance so the
decode-failure and sampled-discovery paths can be exercised.
"""

from __future__ import annotations

import csv
import json
import random
import sys
import time
import uuid
import xml.etree.ElementTree as ET
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import typer

app = typer.Typer(help="Generate synthetic Unified Audit Log exports (CSV or CLIXML).")

CLIXML_NS = "http://schemas.microsoft.com/powershell/2004/04"

EXPORT_COLUMNS = [
    "RecordType",
    "CreationDate",
    "UserIds",
    "Operations",
    "AuditData",
    "ResultIndex",
    "ResultCount",
    "Identity",
]

# Operations value -> (RecordType, workload, numeric RecordType in AuditData)
OPERATIONS = {
    "UserLoggedIn": ("AzureActiveDirectoryStsLogon", "AzureActiveDirectory", 15),
    "FileAccessed": ("SharePointFileOperation", "SharePoint", 6),
    "Set-Mailbox": ("ExchangeAdmin", "Exchange", 1),
    "MailboxLogin": ("ExchangeItem", "Exchange", 2),
}


def _payload(rng: random.Random, operation: str, user: str, created: datetime) -> dict[str, Any]:
    _, workload, record_type = OPERATIONS[operation]
    payload: dict[str, Any] = {
        "CreationTime": created.strftime("%Y-%m-%dT%H:%M:%S"),
        "Id": str(uuid.UUID(int=rng.getrandbits(128))),
        "Operation": operation,
        "OrganizationId": "b1c2d3e4-0000-4000-8000-000000000001",
        "RecordType": record_type,
        "UserId": user,
        "Workload": workload,
    }
    if operation == "UserLoggedIn":
        payload["ClientIP"] = f"10.0.{rng.randint(0, 255)}.{rng.randint(1, 254)}"
        payload["ExtendedProperties"] = [
            {"Name": "UserAgent", "Value": rng.choice(["Mozilla/5.0", "Outlook/16.0"])},
            {"Name": "RequestType", "Value": "Login:login"},
        ]
        payload["ResultStatus"] = rng.choice(["Success", "Failed"])
    elif operation == "FileAccessed":
        name = f"report-{rng.randint(1, 500)}.docx"
        payload["SiteUrl"] = "https://contoso.sharepoint.com/sites/finance/"
        payload["SourceFileName"] = name
        payload["SourceFileExtension"] = "docx"
        payload["ItemType"] = "File"
    elif operation == "Set-Mailbox":
        payload["ObjectId"] = user
        payload["Parameters"] = [
            {"Name": "Identity", "Value": user},
            {"Name": "ForwardingSmtpAddress", "Value": "smtp:archive@contoso.com"},
        ]
        payload["ExternalAccess"] = rng.choice([True, False])
    else:
        payload["LogonType"] = rng.randint(0, 2)
        payload["MailboxOwnerUPN"] = user
        payload["ClientInfoString"] = "Client=MSExchangeRPC"
    return payload


def _generate_records(
    rows: int,
    seed: int,
    malformed_rate: float = 0.0,
    variance_rate: float = 0.0,
) -> list[dict[str, Any]]:
    rng = random.Random(seed)
    start = datetime(2024, 1, 1, tzinfo=UTC)
    users = [f"user{i}@contoso.com" for i in range(1, 21)]
    records: list[dict[str, Any]] = []

    for index in range(1, rows + 1):
        operation = rng.choice(sorted(OPERATIONS))
        user = rng.choice(users)
        created = start + timedelta(minutes=index)
        payload = _payload(rng, operation, user, created)
        if variance_rate and rng.random() < variance_rate:
            payload["DeviceProperties"] = [{"Name": "OS", "Value": "Windows10"}]
        audit_data = json.dumps(payload, separators=(",", ":"))
        if malformed_rate and rng.random() < malformed_rate:
            audit_data = audit_data[: rng.randint(1, len(audit_data) - 1)]
        records.append(
            {
                "RecordType": OPERATIONS[operation][0],
                "CreationDate": created.strftime("%Y-%m-%dT%H:%M:%S"),
                "UserIds": user,
                "Operations": operation,
                "AuditData": audit_data,
                "ResultIndex": index,
                "ResultCount": rows,
                "Identity": str(uuid.UUID(int=rng.getrandbits(128))),
            }
        )
    return records


def _write_csv(path: Path, records: list[dict[str, Any]], type_line: bool = True) -> None:
    with path.open("w", newline="", encoding="utf-8") as f:
        if type_line:
            f.write("#TYPE Deserialized.Microsoft.Exchange.Management.SystemConfigurationTasks.AuditRecord\n")
        writer = csv.DictWriter(f, fieldnames=EXPORT_COLUMNS)
        writer.writeheader()
        writer.writerows(records)


def _write_clixml(path: Path, records: list[dict[str, Any]]) -> None:
    ET.register_namespace("", CLIXML_NS)
    root = ET.Element(f"{{{CLIXML_NS}}}Objs", {"Version": "1.1.0.1"})
    for ref_id, record in enumerate(records):
        obj = ET.SubElement(root, f"{{{CLIXML_NS}}}Obj", {"RefId": str(ref_id)})
        props = ET.SubElement(obj, f"{{{CLIXML_NS}}}Props")
        for name in EXPORT_COLUMNS:
            value = record[name]
            if name in ("ResultIndex", "ResultCount"):
                tag = "I32"
            elif name == "CreationDate":
                tag = "DT"
            else:
                tag = "S"
            element = ET.SubElement(props, f"{{{CLIXML_NS}}}{tag}", {"N": name})
            element.text = str(value)
    ET.ElementTree(root).write(path, encoding="utf-8", xml_declaration=False)


@app.command()
def main(
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        help="Output path; .csv writes Export-Csv format, .xml writes CLIXML.",
    ),
    rows: int = typer.Option(
        10_000,
        "--rows",
        "-r",
        help="Number of audit records to generate.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    malformed_rate: float = typer.Option(
        0.0,
        "--malformed-rate",
        help="Fraction of records whose AuditData is truncated.",
    ),
    variance_rate: float = typer.Option(
        0.0,
        "--variance-rate",
        help="Fraction of records carrying an extra field their operation normally lacks.",
    ),
) -> None:
    """
    Generate a synthetic audit export.
    """
    start = time.perf_counter()
    output.parent.mkdir(parents=True, exist_ok=True)
    typer.echo(f"Generating {rows:,} audit records -> {output} (seed={seed})")
    records = _generate_records(rows, seed, malformed_rate, variance_rate)
    if output.suffix.lower() == ".csv":
        _write_csv(output, records)
    else:
        _write_clixml(output, records)
    duration = time.perf_counter() - start
    typer.echo(f"Generation completed in {duration:.2f}s ({rows / duration:,.0f} records/s)")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
