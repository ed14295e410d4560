def fiscal_year_for(value):
    """Calendar fiscal year as "YYYY"."""
    return f"{value.year:04d}"


def fiscal_period_for(value):
    """Calendar month as "YYYY-MM"."""
    return f"{value.year:04d}-{value.month:02d}"
