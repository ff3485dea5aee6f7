import sqlalchemy as sa


def naive_datetime_column(nullable: bool = True, **kwargs) -> sa.Column:
    """TIMESTAMP WITHOUT TIME ZONE: appointment times are clinic wall clock, audit times naive UTC."""
    return sa.Column(sa.DateTime(timezone=False), nullable=nullable, **kwargs)
