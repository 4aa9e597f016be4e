"""Compose the character design document shared by every illustration prompt."""

from typing import Iterable, Union

from ..types import CharacterProfile

SECONDARY_HEADER = "SECONDARY CHARACTERS:"

CONSISTENCY_TRAILER = (
    "CONSISTENCY RULE: Every character above must look IDENTICAL on every page - "
    "same face, hair, skin tone, body proportions, outfit, colors and accessories. "
    "Never change a character's appearance between illustrations."
)


def compose_design_document(
    main_profile: Union[str, CharacterProfile],
    secondary_profiles: Iterable[Union[dict, CharacterProfile]] = (),
) -> str:
    """
    Merge character profiles into one consistency reference.

    Layout: main profile, then a SECONDARY CHARACTERS section (only when there
    are secondary profiles, in the order given), then the consistency trailer.

    Args:
        main_profile: Main character profile text (or CharacterProfile)
        secondary_profiles: {"name", "profile"} dicts or CharacterProfile objects

    Returns:
        The design document string
    """
    if isinstance(main_profile, CharacterProfile):
        main_profile = main_profile.text

    sections = [main_profile.strip()]

    profiles = [_profile_text(p) for p in secondary_profiles]
    profiles = [p for p in profiles if p]
    if profiles:
        sections.append("\n\n".join([SECONDARY_HEADER, *profiles]))

    sections.append(CONSISTENCY_TRAILER)
    return "\n\n".join(sections)


def _profile_text(profile: Union[dict, CharacterProfile]) -> str:
    """Profile text, prefixed with the name unless the text already starts with it."""
    if isinstance(profile, CharacterProfile):
        name, text = profile.name, profile.text
    else:
        name, text = profile.get("name"), profile.get("profile", "")

    text = (text or "").strip()
    if name and text and not text.lower().startswith(name.lower()):
        return f"{name}: {text}"
    return text
