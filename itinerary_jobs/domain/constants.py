"""Domain-level constants shared by prompt building and output repair."""

# Substituted when the model omits or garbles an activity's coordinates.
DEFAULT_LAT = 40.7128
DEFAULT_LNG = -74.0060

# (time, title pattern, description, location pattern, lat, lng, cost)
PLACEHOLDER_ACTIVITIES = (
    (
        "morning",
        "Explore {destination} - Day {day} Morning",
        "Start your day with a visit to a popular local attraction.",
        "{destination} City Center",
        40.7128,
        -74.0060,
        25.0,
    ),
    (
        "afternoon",
        "{destination} Afternoon Activity",
        "Enjoy a relaxing afternoon activity based on your preferences.",
        "{destination} Park",
        40.7828,
        -73.9654,
        15.0,
    ),
    (
        "evening",
        "{destination} Night Experience",
        "Experience the local nightlife and culture.",
        "{destination} Entertainment District",
        40.7590,
        -73.9845,
        50.0,
    ),
)

ACTIVITY_TIMES = ("morning", "afternoon", "evening")

RAW_SAMPLE_CHARS = 500
ERROR_CONTEXT_CHARS = 30
RESCAN_WINDOW = 120

# Nightly rate used by the offline template itinerary.
TEMPLATE_NIGHTLY_RATE = {"budget": 75.0, "moderate": 150.0, "luxury": 300.0}
