def union_columns(prefix, rows, internal=()) -> list:
    """
    Display order for a page: the required prefix (deduplicated, as given),
    then every other key seen in any row, first-seen order, minus internal keys.
    Zero rows gives the prefix alone so the grid still has a header.
    """
    skip = set(internal)
    columns, seen = [], set()

    for key in prefix:
        if key not in seen and key not in skip:
            columns.append(key)
            seen.add(key)

    for row in rows:
        for key in row:
            if key not in seen and key not in skip:
                columns.append(key)
                seen.add(key)
    return columns


def backfill(rows, columns) -> list:
    """Rows with every column present; missing keys render as empty."""
    return [{c: row.get(c, "") for c in columns} for row in rows]
