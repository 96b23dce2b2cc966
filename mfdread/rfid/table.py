"""
Text rendering of a DumpReport in the classic mfdread table layout.

Trailer blocks show Key A in red, the access bits in green and Key B in
blue. Inconsistent access bits are shown as ERR in bold yellow.
"""

from dataclasses import dataclass

from .report import BlockRecord, DumpReport

RULE = "=" * 100


@dataclass(frozen=True)
class Palette:
    key_a: str = "\x1b[0;31m"
    key_b: str = "\x1b[0;34m"
    access: str = "\x1b[0;32m"
    warning: str = "\x1b[1;93m"
    reset: str = "\x1b[0m"


ANSI = Palette()
PLAIN = Palette(key_a="", key_b="", access="", warning="", reset="")


def _data_column(record: BlockRecord, p: Palette) -> str:
    if record.is_trailer:
        return (
            f"{p.key_a}{record.key_a.hex()}"
            f"{p.access}{record.access_bits.hex()}"
            f"{p.key_b}{record.key_b.hex()}{p.reset}"
        )
    return record.hex


def _access_column(record: BlockRecord, p: Palette) -> str:
    if record.error:
        return f"{p.warning}{record.access_text}{p.reset}"
    return f"{p.access}{record.access_text}{p.reset}"


def render_header(report: DumpReport) -> list[str]:
    card = report.card
    return [
        f"File size: {report.size} bytes. Expected {report.sector_count} sectors",
        f"\tUID: {card.uid.hex()}",
        f"\tBCC:  {card.bcc:02x}",
        f"\tSAK:  {card.sak:02x}",
        f"\tATQA: {card.atqa.hex()}",
    ]


def render_table_head(p: Palette) -> list[str]:
    return [
        RULE,
        "| Sect | Blck |            Data                  | Access |  r  |  w    |  i  | d/t/r [info]       |",
        "|      |      |                                  |  cond. |   A | Acc.  | B                        |",
        f"|      |      | {p.key_a}Key A{p.reset}      {p.access}Access Bits{p.reset}"
        f"     {p.key_b}Key B{p.reset} |        | r w | r   w | r w                      |",
    ]


def render_row(record: BlockRecord, p: Palette) -> str:
    sector = str(record.sector) if record.show_sector else ""
    return (
        f"| {sector:<5}|  {record.block:<3d} | {_data_column(record, p)} |  "
        f"{_access_column(record, p)}   | {record.permissions:<38} | {record.ascii}"
    )


def render_report(report: DumpReport, color: bool = True) -> str:
    """Render the full report as text, optionally with ANSI colours."""
    p = ANSI if color else PLAIN
    lines = render_header(report) + render_table_head(p)
    current_sector = None
    for record in report.blocks:
        if record.sector != current_sector:
            lines.append(RULE)
            current_sector = record.sector
        lines.append(render_row(record, p))
    lines.append(RULE)
    return "\n".join(lines)
