"""
DSPy Signature for finding the supporting cast in a finished story.
"""

import dspy


class CharacterExtractorSignature(dspy.Signature):
    """
    Identify the secondary characters in a children's story.

    Secondary characters are every named or clearly recurring character other
    than the main character: family members, friends, animals, magical creatures.
    Do NOT include the main character.

    For each character give:
    - name: how the story refers to them (e.g. "Whiskers", "Grandma Rose", "the wise owl")
    - role: a short phrase describing who they are in the story
    - importance: integer 1-10, how much the character matters to the plot

    OUTPUT FORMAT:
    A JSON array and nothing else, most important character first:
    [{"name": "Whiskers", "role": "the family cat who follows Alice everywhere", "importance": 8}]

    Return [] if the story has no secondary characters.
    """

    story_text: str = dspy.InputField(desc="The complete story text")
    main_character_name: str = dspy.InputField(desc="Name of the main character, to exclude")

    characters_json: str = dspy.OutputField(
        desc='JSON array of {"name", "role", "importance"} objects. No prose, no markdown.'
    )
