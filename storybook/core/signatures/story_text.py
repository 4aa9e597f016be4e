"""
DSPy Signature for writing the personalized story from quiz answers.

The story is written first; characters and visual profiles are derived
from it afterwards.
"""

import dspy


class StoryTextSignature(dspy.Signature):
    """
    Write a personalized children's story starring the child described in the quiz.

    You are a talented children's book author who creates personalized stories
    that captivate young readers. Write engaging, age-appropriate stories that
    make children feel special and loved.

    REQUIREMENTS:
    - Exactly the number of paragraphs given under Length, each of the given
      number of sentences
    - Use the child's name at least as often as Name Mentions asks
    - Age-appropriate vocabulary for the child's age
    - Weave in the themes organically
    - Convey the core message without announcing it as a lesson
    - End with the child embodying the core message
    - Maintain the requested tone throughout
    - If a story idea is given, build the plot around it

    OUTPUT FORMAT:
    Return ONLY the story text, with paragraphs separated by a blank line.
    No title, no headings, no paragraph numbers.
    """

    main_character: str = dspy.InputField(
        desc="Name, age, personality traits and character form of the child"
    )
    story_details: str = dspy.InputField(
        desc="Story type, tone, core message, themes, length and optional story idea"
    )

    story: str = dspy.OutputField(
        desc="The story prose: paragraphs separated by blank lines."
    )
