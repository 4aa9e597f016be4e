"""
DSPy Signatures for character visual profiles.

Profiles are the "visual DNA" prepended to every illustration prompt so that
each character looks identical on every page.
"""

import dspy


class MainCharacterProfileSignature(dspy.Signature):
    """
    Create a detailed visual profile of the main character for a children's book illustrator.

    The profile is a LOCKED description: every illustration of the book will be
    drawn from it, so it must be specific enough that two illustrators would draw
    the same child.

    Include, in this order:
    - APPEARANCE: apparent age, height and build, skin tone, face shape
    - HAIR: exact color, length and style
    - EYES: color and shape
    - OUTFIT: one specific outfit with exact colors, worn on every page
    - SIGNATURE ITEM: one accessory or object always with the character
    - EXPRESSION & POSTURE: how the personality traits show visually

    IMPORTANT:
    - Be SPECIFIC. Not "brown hair" but "shoulder-length wavy chestnut hair with a red clip"
    - Colors must be exact: "mustard yellow raincoat" not "yellow coat"
    - Begin with "MAIN CHARACTER - <name>:"
    - No story events, only appearance
    """

    character_details: str = dspy.InputField(
        desc="Name, age, personality traits, character form and favorite things of the child"
    )
    story_type: str = dspy.InputField(desc="Story type and tone, to match the visual mood")

    profile: str = dspy.OutputField(
        desc="Visual profile of the main character, 120-200 words."
    )


class SecondaryCharacterProfileSignature(dspy.Signature):
    """
    Create a concise visual profile of one supporting character in a children's book.

    Use what the story says about the character and fill the gaps with choices
    that fit the story's world. The profile must be specific enough to keep the
    character identical across every illustration.

    Include: species or kind, apparent age, size relative to the main character,
    coloring (fur, skin, feathers...), clothing or markings with exact colors,
    and one distinctive feature.

    IMPORTANT:
    - Begin with "<name> (<role>):"
    - Stay consistent with anything the story states about the character
    - No story events, only appearance
    """

    character_name: str = dspy.InputField(desc="Name of the supporting character")
    character_role: str = dspy.InputField(desc="The character's role in the story")
    story_text: str = dspy.InputField(desc="The complete story text, for context")
    main_character: str = dspy.InputField(desc="Name and age of the main character, for scale")

    profile: str = dspy.OutputField(
        desc="Visual profile of this character, 60-120 words."
    )
