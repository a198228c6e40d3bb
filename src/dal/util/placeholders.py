import re
from typing import Any, Callable, List, Optional, Tuple

_PLACEHOLDER = re.compile(r"\$(\d+)")


def translate_placeholders(
    sql: str,
    params: List[Any],
    *,
    placeholder: str,
    quote_identifier: Optional[Callable[[str], str]] = None,
    escape_percent: bool = False,
) -> Tuple[str, List[Any]]:
    """Rewrite canonical SQL ($N placeholders, double-quoted identifiers) for a driver.

    Text inside double-quoted identifiers and single-quoted string literals is
    never treated as a placeholder.
    Parameters are reordered to match placeholder occurrence order.
    """
    out: List[str] = []
    indices: List[int] = []
    i = 0
    length = len(sql)
    while i < length:
        ch = sql[i]
        if ch == "'":
            # String literals are copied verbatim; '' is an escaped quote.
            end = i + 1
            while end < length:
                if sql[end] == "'":
                    if end + 1 < length and sql[end + 1] == "'":
                        end += 2
                        continue
                    break
                end += 1
            if end >= length:
                raise ValueError("Unterminated string literal in SQL.")
            literal = sql[i : end + 1]
            out.append(literal.replace("%", "%%") if escape_percent else literal)
            i = end + 1
            continue
        if ch == '"':
            end = i + 1
            name_chars = []
            while end < length:
                if sql[end] == '"':
                    if end + 1 < length and sql[end + 1] == '"':
                        name_chars.append('"')
                        end += 2
                        continue
                    break
                name_chars.append(sql[end])
                end += 1
            if end >= length:
                raise ValueError("Unterminated quoted identifier in SQL.")
            name = "".join(name_chars)
            out.append(quote_identifier(name) if quote_identifier else sql[i : end + 1])
            i = end + 1
            continue
        if ch == "$":
            match = _PLACEHOLDER.match(sql, i)
            if match:
                indices.append(int(match.group(1)))
                out.append(placeholder)
                i = match.end()
                continue
        if ch == "%" and escape_percent:
            out.append("%%")
            i += 1
            continue
        out.append(ch)
        i += 1

    if not indices:
        if params:
            raise ValueError("Query received params but no $N placeholders were found.")
        return "".join(out), []

    if min(indices) <= 0:
        raise ValueError("Invalid placeholder index; placeholders must start at $1.")
    max_index = max(indices)
    if set(indices) != set(range(1, max_index + 1)):
        raise ValueError(
            f"Invalid placeholder sequence: expected $1..${max_index} without gaps, got "
            f"{sorted(set(indices))}."
        )
    if max_index != len(params):
        raise ValueError(
            f"Parameter count mismatch: expected {max_index}, got {len(params)}."
        )
    return "".join(out), [params[idx - 1] for idx in indices]
