"""
Offline generators for demo mode.

Drop-in stand-ins for the remote generators so the whole pipeline can run
without provider API keys: a templated story, a fixed supporting cast,
templated profiles, and flat-colour placeholder illustrations.
"""

import asyncio
import base64
import hashlib
from io import BytesIO
from typing import Optional

from PIL import Image, ImageDraw

from ..types import QuizInput, SecondaryCharacter, CharacterProfile, StoryType

# Ten paragraphs per story type; {name} is the child's name
DEMO_STORIES = {
    StoryType.EVERYDAY_ADVENTURE: [
        "Once upon a time, there was a wonderful child named {name} who loved to explore the neighborhood. Every morning, {name} woke up with a big smile, ready for a new adventure.",
        "{name} started the day by watering the flowers next door. The colorful petals sparkled with water drops as {name} carefully tended to each plant.",
        "On the garden fence sat Hoot, a sleepy old owl who had seen every adventure on the street. \"Good morning, {name},\" Hoot said with a slow blink.",
        "Just then Clover the rabbit hopped out from under a hedge. Clover had lost a shiny blue button and could not find it anywhere.",
        "{name} knelt down in the grass and looked very carefully. Brave and patient, {name} searched under every leaf and behind every stone.",
        "Hoot flew up to the rooftops to help, and Clover sniffed along the path. Together the three friends followed a trail of tiny footprints.",
        "At the end of the trail was a busy magpie, proudly guarding a nest full of treasures. {name} asked kindly if the blue button could go home.",
        "The magpie thought for a moment and then nodded. {name} traded a bright red leaf for the button, and everyone laughed.",
        "Clover hugged {name} tightly, and Hoot hooted a happy song. {name} felt warm all over, knowing that kindness had saved the day.",
        "As the sun went down, {name} waved goodbye to new friends. From that day on, {name} knew that even small adventures can be the best ones.",
    ],
    StoryType.MAGICAL_JOURNEY: [
        "In a land where dreams float like colorful bubbles, there lived a special child named {name}. Every night, {name} traveled to the Dream Realm.",
        "Tonight {name} arrived in a garden made entirely of clouds. Flowers bloomed in rainbow colors and butterflies shimmered like moonbeams.",
        "\"Welcome, dear {name},\" said Hoot, a wise owl made of starlight. \"The Dream Realm needs your help. The happy dreams have gone missing!\"",
        "Beside Hoot stood Clover, a silver rabbit with ears that glowed. Clover held a little lantern to light the way.",
        "{name} followed the lantern through gray and sleepy clouds. {name} was not afraid, because friends were near.",
        "The gray clouds were not mean at all. They were sad, because nobody had ever thanked them for the rain.",
        "{name} gave each cloud a gentle hug and whispered thank you. One by one, the clouds began to giggle and glow.",
        "Thousands of happy dreams floated back into the sky. Dreams of flying, of unicorns, and of tea parties with friendly dragons filled the air.",
        "Hoot bowed low and gave {name} a tiny dream-catcher. \"Share the happy dreams with everyone,\" Hoot said.",
        "When {name} woke up, the dream-catcher was glowing softly beside the bed. {name} smiled, knowing the Dream Realm would always be there.",
    ],
    StoryType.BRAVE_HERO: [
        "{name} was an ordinary child with an extraordinary heart. One morning a glowing map appeared on {name}'s pillow.",
        "The map showed an imaginary kingdom where the bridges had all fallen down. Underneath it was written: only a true hero can help.",
        "{name} stepped through the map and landed in a meadow. Hoot, a knightly owl in a tiny helmet, was waiting there.",
        "\"The river has swept our bridges away,\" said Hoot. \"The villagers cannot reach each other anymore.\"",
        "Clover, a quick-thinking rabbit engineer, had a plan but needed a brave helper. {name} rolled up both sleeves at once.",
        "Together they gathered logs, vines and smooth flat stones. {name} carried what was light and cheered on everyone else.",
        "When a storm rolled in, the others wanted to stop. {name} pointed at the half-built bridge and said they could finish it together.",
        "With one last push the bridge stretched across the river. The villagers ran across, cheering {name}'s name.",
        "The queen of the kingdom gave {name} a golden star. \"Heroes are not the biggest,\" she said, \"they are the ones who help.\"",
        "{name} stepped back through the map and landed safely at home. The golden star shone on the shelf, a reminder that {name} was unique and special.",
    ],
    StoryType.BEDTIME_STORY: [
        "When the moon rose over the quiet town, {name} snuggled under a soft blanket. The stars blinked hello through the window.",
        "A gentle tapping came from the glass. There sat Hoot, a fluffy owl with kind golden eyes.",
        "\"Would you like to see the night garden, {name}?\" Hoot asked softly. {name} nodded and slipped on cozy slippers.",
        "In the night garden the flowers glowed like little lamps. Clover the rabbit was tucking the baby flowers in for the night.",
        "{name} helped Clover pull soft petal blankets over each sleepy bud. Every flower sighed a tiny thank you.",
        "The fireflies hummed a lullaby as they drifted by. {name} hummed along, slow and quiet.",
        "Hoot showed {name} the pond where the moon takes a bath. The water rippled silver and calm.",
        "Clover yawned a great big rabbit yawn, and so did {name}. It was time for everyone to rest.",
        "Hoot carried {name} home on a breeze as light as a feather. The blanket was still warm.",
        "{name} closed both eyes and dreamed of glowing flowers. Goodnight, {name}. Goodnight, night garden.",
    ],
}

DEMO_CAST = [
    SecondaryCharacter(name="Hoot", role="a wise old owl who guides the hero", importance=8),
    SecondaryCharacter(name="Clover", role="a gentle rabbit friend", importance=6),
    SecondaryCharacter(name="Magpie", role="a busy bird who collects shiny things", importance=3),
]

DEMO_APPEARANCES = {
    "Hoot": "a round brown owl with cream chest feathers, large golden eyes and tufted ears",
    "Clover": "a small grey rabbit with a white cotton tail, long soft ears and a pink nose",
    "Magpie": "a black and white magpie with a glossy blue-green tail",
}


class DemoStoryWriter:
    """Templated story writer with the same call shape as StoryWriter."""

    def __call__(self, quiz: QuizInput) -> str:
        paragraphs = DEMO_STORIES[quiz.story_type]
        return "\n\n".join(p.format(name=quiz.child_name) for p in paragraphs)


class DemoCharacterExtractor:
    """Returns the fixed demo cast, found in the story text."""

    def __call__(self, story_text: str, main_character_name: str) -> list[SecondaryCharacter]:
        text = story_text.lower()
        return [c for c in DEMO_CAST if c.name.lower() in text]


class DemoCharacterProfiler:
    """Templated character profiles."""

    def main_profile(self, quiz: QuizInput) -> CharacterProfile:
        traits = ", ".join(quiz.child_traits).lower() or "cheerful"
        return CharacterProfile(
            text=(
                f"{quiz.child_name} ({quiz.child_age}): a {traits} child with a round, friendly face, "
                "short curly brown hair, warm brown eyes and rosy cheeks. Wears a yellow raincoat "
                "over a striped blue shirt, red sneakers, and a small green backpack."
            )
        )

    def secondary_profile(
        self,
        character: SecondaryCharacter,
        story_text: str,
        main_character_name: str,
        main_character_age: str,
    ) -> CharacterProfile:
        look = DEMO_APPEARANCES.get(character.name, "a friendly storybook character")
        return CharacterProfile(
            text=f"{character.name}: {look}. Always drawn at about half the height of {main_character_name}.",
            name=character.name,
        )


class DemoIllustrator:
    """
    Placeholder illustrations rendered locally with Pillow.

    Args:
        delay: Seconds to wait per image, to make progress visible
        image_px: Width and height of the square placeholder
    """

    def __init__(self, delay: float = 0.0, image_px: int = 256):
        self.delay = delay
        self.image_px = image_px

    async def generate(self, prompt: str, size: Optional[str] = None) -> str:
        if self.delay:
            await asyncio.sleep(self.delay)
        return render_placeholder(prompt, self.image_px)


def render_placeholder(prompt: str, image_px: int = 256) -> str:
    """Render a pastel square whose colour is derived from the prompt. Returns base64 PNG."""
    digest = hashlib.sha256(prompt.encode("utf-8")).digest()
    background = tuple(160 + b % 96 for b in digest[:3])

    image = Image.new("RGB", (image_px, image_px), background)
    draw = ImageDraw.Draw(image)
    margin = image_px // 8
    draw.ellipse(
        [margin, margin, image_px - margin, image_px - margin],
        outline=(255, 255, 255),
        width=max(2, image_px // 64),
    )

    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")
