from protean.domain import Domain
from sqlalchemy import create_engine

SQL_PROVIDERS = ("sqlite", "postgresql")


def _sql_providers(domain: Domain):
    for _, provider in domain.providers.items():
        if provider.conn_info["provider"] in SQL_PROVIDERS:
            yield provider


def setup_db(domain: Domain):
    """Create the cart and purchase tables on SQL providers.

    The in-memory provider needs no schema, so this is a no-op unless the
    active configuration overlay points at SQLite or PostgreSQL.
    """
    with domain.domain_context():
        for provider in _sql_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])

            # Touching _dao registers the model with the provider's metadata
            for _, aggregate_record in domain.registry.aggregates.items():
                if aggregate_record.cls.meta_.provider == provider.name:
                    domain.repository_for(aggregate_record.cls)._dao  # noqa: B018

            for _, entity_record in domain.registry.entities.items():
                if entity_record.cls.meta_.provider == provider.name:
                    domain.repository_for(entity_record.cls)._dao  # noqa: B018

            provider._metadata.create_all(engine)


def drop_db(domain: Domain):
    with domain.domain_context():
        for provider in _sql_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])
            provider._metadata.drop_all(engine)


# Queries are capped at the aggregate's default limit, so listings page through
PAGE_SIZE = 100


def query_all(dao) -> list:
    """Every record behind ``dao``, fetched page by page in id order."""
    records = []
    offset = 0
    while True:
        page = dao.query.order_by("id").offset(offset).limit(PAGE_SIZE).all()
        records.extend(page.items)
        offset += PAGE_SIZE
        if not page.items or offset >= page.total:
            return records
