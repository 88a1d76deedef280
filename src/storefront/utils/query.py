"""Repository query shortcuts shared by handlers and routes."""

from protean.utils.globals import current_domain


def find_all(element_cls, **filters) -> list:
    """Return every record of ``element_cls`` matching the exact-value filters."""
    query = current_domain.repository_for(element_cls)._dao.query.limit(None)
    if filters:
        query = query.filter(**filters)
    return list(query.all().items)


def find_one(element_cls, **filters):
    """Return the first matching record, or None."""
    items = find_all(element_cls, **filters)
    return items[0] if items else None


def delete_all(element_cls, records) -> int:
    dao = current_domain.repository_for(element_cls)._dao
    count = 0
    for record in records:
        dao.delete(record)
        count += 1
    return count
