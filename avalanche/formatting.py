"""Markdown rendering of CAIC products for tool responses."""

from typing import Iterable

from .models import (
    AvalancheForecast,
    AvalancheProblem,
    DangerRating,
    DaySummary,
    RegionalDiscussion,
    SpecialProduct,
)

NO_RATING = "noRating"

ELEVATION_LABELS = {
    "alp": "Alpine",
    "tln": "Treeline",
    "btl": "Below Treeline",
}

ASPECT_LABELS = {
    "n": "N",
    "ne": "NE",
    "e": "E",
    "se": "SE",
    "s": "S",
    "sw": "SW",
    "w": "W",
    "nw": "NW",
}

PROBLEM_TYPE_LABELS = {
    "persistentSlab": "Persistent Slab",
    "windSlab": "Wind Slab",
    "looseWet": "Loose Wet",
    "looseDry": "Loose Dry",
    "stormSlab": "Storm Slab",
    "wetSlab": "Wet Slab",
    "cornice": "Cornice",
    "glide": "Glide",
    "deepPersistentSlab": "Deep Persistent Slab",
}

DANGER_LABELS = {
    "low": "Low",
    "moderate": "Moderate",
    "considerable": "Considerable",
    "high": "High",
    "extreme": "Extreme",
}

SPECIAL_PRODUCT_TYPE_LABELS = {
    "warning": "Warning",
    "specialAdvisory": "Special Advisory",
}


def format_aspect_elevations(aspect_elevations: Iterable[str]) -> str:
    """Group strings like ``n_alp`` by elevation: ``N, NE @ Alpine; E @ Treeline``."""
    by_elevation: dict[str, list[str]] = {}
    for value in aspect_elevations:
        aspect, _, elevation = value.partition("_")
        if not aspect or not elevation:
            continue
        elevation_label = ELEVATION_LABELS.get(elevation, elevation)
        aspect_label = ASPECT_LABELS.get(aspect, aspect.upper())
        by_elevation.setdefault(elevation_label, []).append(aspect_label)

    return "; ".join(f"{', '.join(aspects)} @ {elevation}" for elevation, aspects in by_elevation.items())


def format_day_summaries(days: Iterable[DaySummary]) -> str:
    return "\n\n".join(f"### {day.date}\n{day.content}" for day in days)


def format_danger_ratings(days: Iterable[DangerRating]) -> str:
    blocks = []
    for day in days:
        lines = [f"### {day.date}"]
        for band in ("alp", "tln", "btl"):
            rating = getattr(day, band)
            if rating != NO_RATING:
                lines.append(f"- {ELEVATION_LABELS[band]}: {DANGER_LABELS.get(rating, rating)}")
        # Days rated noRating on every band are dropped entirely
        if len(lines) > 1:
            blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def format_avalanche_problem(problem: AvalancheProblem) -> str:
    lines = [
        f"#### {PROBLEM_TYPE_LABELS.get(problem.type, problem.type)}",
        f"- Likelihood: {problem.likelihood}",
        f"- Expected Size: {problem.expected_size.min} - {problem.expected_size.max}",
        f"- Aspects/Elevations: {format_aspect_elevations(problem.aspect_elevations)}",
    ]
    if problem.comment:
        lines.append(f"- Details: {problem.comment}")
    return "\n".join(lines)


def format_avalanche_problems(days: Iterable[list[AvalancheProblem]]) -> str:
    blocks = []
    for index, problems in enumerate(days):
        if not problems:
            continue
        formatted = "\n\n".join(format_avalanche_problem(p) for p in problems)
        blocks.append(f"### Day {index + 1}\n{formatted}")
    return "\n\n".join(blocks)


def format_avalanche_forecast(forecast: AvalancheForecast) -> str:
    """Format an avalanche forecast as Markdown. Empty sections are left out."""
    sections = ["# Avalanche Forecast", f"Issued: {forecast.issue_date_time}"]

    travel_advice = [day for group in forecast.terrain_and_travel_advice.days for day in group]
    candidates = [
        ("Danger Ratings", format_danger_ratings(forecast.danger_ratings.days)),
        ("Avalanche Summary", format_day_summaries(forecast.avalanche_summary.days)),
        ("Avalanche Problems", format_avalanche_problems(forecast.avalanche_problems.days)),
        ("Snowpack Summary", format_day_summaries(forecast.snowpack_summary.days)),
        ("Weather Summary", format_day_summaries(forecast.weather_summary.days)),
        ("Terrain and Travel Advice", format_day_summaries(travel_advice)),
    ]
    for title, body in candidates:
        if body:
            sections.append(f"## {title}\n{body}")

    return "\n\n".join(sections)


def format_regional_discussion(discussion: RegionalDiscussion) -> str:
    return "\n\n".join([
        f"# Regional Discussion: {discussion.title}",
        f"Issued: {discussion.issue_date_time}",
        discussion.message,
    ])


def format_special_product(product: SpecialProduct) -> str:
    type_label = SPECIAL_PRODUCT_TYPE_LABELS.get(product.special_product_type, product.special_product_type)
    sections = [
        f"# Special Product: {product.title}",
        f"Type: {type_label}",
        f"Issued: {product.issue_date_time}",
    ]
    if product.start_date:
        sections.append(f"Start Date: {product.start_date}")
    if product.message:
        sections.append(product.message)
    return "\n\n".join(sections)


def format_product(product) -> str:
    """Dispatch on the product variant."""
    if isinstance(product, AvalancheForecast):
        return format_avalanche_forecast(product)
    if isinstance(product, RegionalDiscussion):
        return format_regional_discussion(product)
    if isinstance(product, SpecialProduct):
        return format_special_product(product)
    raise TypeError(f"Cannot format product of type {type(product).__name__}")
