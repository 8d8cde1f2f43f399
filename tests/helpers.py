from typing import Iterable, Sequence

HEADER = ["NR", "FILENR", "ID", "SYMBOL", "USE", "TRACE", "DE", "EN"]


def table_text(rows: Iterable[Sequence[str]], header: Sequence[str] = HEADER, newline: str = "\r\n") -> str:
    lines = ["\t".join(header)] + ["\t".join(r) for r in rows]
    return newline.join(lines) + newline


def row(nr: str, de: str, en: str = "", file_nr: str = "1", id_: str = "10",
        symbol: str = "DIA_SYMBOL", use: str = "", trace: str = "") -> list:
    return [nr, file_nr, id_, symbol, use, trace, de, en]
