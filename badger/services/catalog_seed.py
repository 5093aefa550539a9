"""
Default badge catalog: five topics per category, each at gold, silver and bronze.

Used by ``flask seed-catalog-badges`` and ``scripts/seed_catalog.py``.
"""

from badger.models.catalog import BADGE_LEVELS

TOPICS = {
    "technical": [
        ("System Architecture", "Designs scalable, resilient system architectures."),
        ("Database Optimization", "Tunes queries, indexes and schemas for performance."),
        ("API Design Excellence", "Builds consistent, well-documented APIs."),
        ("Security Champion", "Drives secure design and remediation of vulnerabilities."),
        ("Testing Mastery", "Establishes effective automated testing practices."),
    ],
    "organizational": [
        ("Project Leadership", "Leads projects from planning through delivery."),
        ("Process Improvement", "Identifies and removes friction in team processes."),
        ("Documentation Excellence", "Keeps knowledge written down and discoverable."),
        ("Cross-Team Collaboration", "Delivers outcomes that span several teams."),
        ("Innovation Advocate", "Introduces and champions new ideas and tools."),
    ],
    "softskilled": [
        ("Mentorship Excellence", "Grows other engineers through mentoring."),
        ("Communication Mastery", "Communicates clearly with technical and business audiences."),
        ("Problem Solving Expert", "Untangles ambiguous problems methodically."),
        ("Adaptability Champion", "Stays effective through change and uncertainty."),
        ("Technical Leadership", "Sets technical direction and builds consensus."),
    ],
}

_LEVEL_SCOPE = {
    "gold": "Recognised at organisation level.",
    "silver": "Recognised across several teams.",
    "bronze": "Recognised within the team.",
}

CATALOG_BADGES = [
    {
        "title": f"{topic} - {level.capitalize()}",
        "description": f"{summary} {_LEVEL_SCOPE[level]}",
        "category": category,
        "level": level,
    }
    for category, topics in TOPICS.items()
    for topic, summary in topics
    for level in BADGE_LEVELS
]
