"""Exercise catalog, avatar references and keyword tables."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

BODY_PARTS: tuple[str, ...] = (
    "Chest",
    "Back",
    "Shoulders",
    "Arms",
    "Legs",
    "Core/Abs",
    "Cardio",
    "Full Body",
)

EXERCISES_BY_BODY_PART: dict[str, tuple[str, ...]] = {
    "Chest": (
        "Bench Press",
        "Incline Bench Press",
        "Dumbbell Press",
        "Chest Fly",
        "Push-ups",
        "Cable Crossover",
    ),
    "Back": (
        "Deadlift",
        "Pull-ups",
        "Barbell Row",
        "Lat Pulldown",
        "Seated Row",
        "T-Bar Row",
    ),
    "Shoulders": (
        "Overhead Press",
        "Lateral Raise",
        "Front Raise",
        "Rear Delt Fly",
        "Arnold Press",
        "Shrugs",
    ),
    "Arms": (
        "Barbell Curl",
        "Tricep Dips",
        "Hammer Curl",
        "Skull Crushers",
        "Cable Curl",
        "Tricep Pushdown",
    ),
    "Legs": (
        "Squat",
        "Leg Press",
        "Romanian Deadlift",
        "Lunges",
        "Leg Curl",
        "Calf Raise",
    ),
    "Core/Abs": (
        "Plank",
        "Crunches",
        "Russian Twist",
        "Leg Raises",
        "Ab Wheel",
        "Cable Crunch",
    ),
    "Cardio": (
        "Running",
        "Cycling",
        "Rowing",
        "Elliptical",
        "Swimming",
        "Jump Rope",
    ),
    "Full Body": (
        "Burpees",
        "Kettlebell Swing",
        "Clean and Press",
        "Thrusters",
        "Mountain Climbers",
    ),
}

DEFAULT_AVATAR = "/avatars/02e5ef8fa00e64c8881597fbf765ca2f.jpg"

AVATAR_PLACEHOLDERS: tuple[str, ...] = (
    "/avatars/02e5ef8fa00e64c8881597fbf765ca2f.jpg",
    "/avatars/299fc28ae92e1e843e4319083363e825.jpg",
    "/avatars/2a5f4eaede1285174c0cb0b249df1c98.jpg",
    "/avatars/3cf0aa86f56b7bcfddc362644d4ef210.jpg",
    "/avatars/40cff3ed-476f-4ce6-b872-fd1b30f45069.png",
    "/avatars/40f998422473229a7c81b590e807c92c.jpg",
    "/avatars/628c3490149109d308a446e326af4383.jpg",
    "/avatars/73189e5aa31ee8c27a4f8fc9797d1169.jpg",
    "/avatars/77f4329db91657a6bee5f5b7f1219abd.jpg",
    "/avatars/942159ec2ebd07dc6b8c9b9322087769.jpg",
    "/avatars/af11e634321a9c85671bc1fd0d55da60.jpg",
)

# Mutually exclusive movement buckets, checked in this order.
BALANCE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Push": ("chest", "bench", "press", "shoulder", "tricep", "overhead"),
    "Pull": ("back", "pull", "row", "bicep", "curl", "deadlift"),
    "Legs": ("squat", "leg", "lunge", "calf"),
}
BALANCE_FALLBACK = "Other"

# Overlapping body-part keywords: one exercise may light up several parts.
HEAT_MAP_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Chest": ("chest", "bench", "fly", "push-up", "crossover", "dip"),
    "Back": ("back", "row", "pull", "deadlift", "lat "),
    "Shoulders": ("shoulder", "overhead", "lateral", "raise", "delt", "shrug", "arnold"),
    "Arms": ("curl", "tricep", "bicep", "skull", "pushdown", "dip"),
    "Legs": ("squat", "leg", "lunge", "calf", "deadlift"),
    "Core": ("plank", "crunch", "twist", "ab ", "mountain climber"),
}


def is_valid_image_path(src: str | None) -> bool:
    """Local path or absolute http(s) URL."""
    if not src:
        return False
    return src.startswith("/") or src.startswith("http://") or src.startswith("https://")


def display_avatar(src: str | None) -> str:
    return src if is_valid_image_path(src) else DEFAULT_AVATAR


def available_exercises(
    body_part: str,
    custom: Mapping[str, Sequence[str]] | None = None,
) -> list[str]:
    """Catalog exercises for ``body_part`` followed by the group's custom ones."""
    base = list(EXERCISES_BY_BODY_PART.get(body_part, ()))
    extra = [name for name in (custom or {}).get(body_part, ()) if name not in base]
    return base + extra
