import copy
import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError

from sunny.models.activity import ActivityPayload
from sunny.services.llm import LLMService, get_llm

logger = logging.getLogger(__name__)

SAFE_FALLBACK_GOAL = "space adventure"

DEMO_ACTIVITIES = {
    "fractions": {
        "intro": "Let's play a quick fraction game! 🍕",
        "activity": {
            "type": "quiz",
            "topic": "Fractions: halves vs quarters",
            "goal": "Tell which fraction is bigger",
            "steps": [
                {
                    "prompt": "Imagine a pizza cut into 2 slices. Which slice is bigger: 1/2 or 1/4?",
                    "choices": ["1/2", "1/4"],
                    "correctAnswer": "1/2",
                    "hint": "Fewer slices means bigger pieces.",
                },
                {
                    "prompt": "If you share a brownie with 3 friends, what fraction of the brownie do you get?",
                    "choices": ["1/2", "1/3", "1/4"],
                    "correctAnswer": "1/4",
                    "hint": "Four equal friends means four equal parts!",
                },
            ],
        },
        "retry": {
            "intro": "No worries! Let's look at one more tasty fraction together. 🍰",
            "activity": {
                "type": "quiz",
                "topic": "Fractions warm-up",
                "goal": "Match the bigger piece",
                "steps": [
                    {
                        "prompt": "Which is larger: 1/3 of a pie or 1/6 of the same pie?",
                        "choices": ["1/3", "1/6"],
                        "correctAnswer": "1/3",
                        "hint": "Think about how many pieces the pie is split into.",
                    },
                    {
                        "prompt": "If you cut a sandwich into 4 equal parts and eat 2, what fraction did you eat?",
                        "choices": ["1/2", "1/4", "2/4"],
                        "correctAnswer": "1/2",
                        "hint": "2 pieces out of 4 equal pieces.",
                    },
                ],
            },
        },
    },
    "reading": {
        "intro": "Story time! Let's spot the main idea together. 📚",
        "activity": {
            "type": "story",
            "topic": "Finding the main idea",
            "goal": "Choose the sentence that matches the big idea",
            "steps": [
                {
                    "prompt": (
                        "Sunny lost a library book. They followed glitter on the floor to find it "
                        "in the art corner. What is the main idea?"
                    ),
                    "choices": [
                        "Sunny painted a sparkly picture.",
                        "Sunny followed clues to solve the problem.",
                        "Sunny took a nap in the art corner.",
                    ],
                    "correctAnswer": "Sunny followed clues to solve the problem.",
                    "hint": "The story keeps talking about clues!",
                },
                {
                    "prompt": "Which detail supports that main idea?",
                    "choices": [
                        "Sunny checked the classroom pet cage.",
                        "Sunny saw glitter leading to the art corner.",
                        "Sunny brought the book to music class.",
                    ],
                    "correctAnswer": "Sunny saw glitter leading to the art corner.",
                    "hint": "Look for a clue that helps find the book.",
                },
            ],
        },
        "retry": {
            "intro": "Great effort! Let's use another story clue. 🔍",
            "activity": {
                "type": "story",
                "topic": "Main idea detective",
                "goal": "Use clues to describe the main idea",
                "steps": [
                    {
                        "prompt": (
                            "Sunny was nervous about the class play, so they practiced lines, tried "
                            "costumes, and smiled big on stage. What's the main idea?"
                        ),
                        "choices": [
                            "Sunny forgot the lines.",
                            "Sunny practiced and felt ready.",
                            "Sunny built the stage set.",
                        ],
                        "correctAnswer": "Sunny practiced and felt ready.",
                        "hint": "Most sentences are about getting ready.",
                    },
                ],
            },
        },
    },
    "space": {
        "intro": "Blast off! Ready for a planet mission? 🚀",
        "activity": {
            "type": "puzzle",
            "topic": "Planets and space facts",
            "goal": "Match planets with their fun facts",
            "steps": [
                {
                    "prompt": "Which planet has a giant red spot storm?",
                    "choices": ["Mars", "Earth", "Jupiter"],
                    "correctAnswer": "Jupiter",
                    "hint": "It's the largest planet!",
                },
                {
                    "prompt": "Which planet do we live on that has the right air and water for us?",
                    "choices": ["Mercury", "Earth", "Neptune"],
                    "correctAnswer": "Earth",
                    "hint": "It's called the Goldilocks planet.",
                },
            ],
        },
        "retry": {
            "intro": "Space is tricky, but you've got this! Let's review the planets. 🪐",
            "activity": {
                "type": "puzzle",
                "topic": "Planets review",
                "goal": "Remember special planet features",
                "steps": [
                    {
                        "prompt": "Which planet is closest to the sun?",
                        "choices": ["Mercury", "Venus", "Earth"],
                        "correctAnswer": "Mercury",
                        "hint": "It zooms fastest around the sun.",
                    },
                ],
            },
        },
    },
}


@dataclass
class PlannedActivity:
    intro_message: str
    activity: ActivityPayload


def catalog_key(goal: str) -> str:
    g = (goal or "").lower()
    if "fraction" in g:
        return "fractions"
    if "space" in g or "planet" in g:
        return "space"
    return "reading"


def build_intro_message(age_bracket: str, goal: str, was_correct: Optional[bool] = None) -> str:
    if was_correct is False:
        encouragement = "Great try! Let's slow down and tackle this together."
    else:
        encouragement = "Awesome energy! I picked something fun for you."
    return f"{encouragement} ({age_bracket} explorer working on {goal})."


def determine_correctness(activity: Optional[ActivityPayload], answer: Optional[str]) -> Optional[bool]:
    """
    Compare la réponse au premier step qui porte un correctAnswer (trim + casse ignorée).
    None si on ne peut pas trancher.
    """
    if activity is None or not answer or not answer.strip():
        return None
    step = next((s for s in activity.steps if s.correctAnswer), None)
    if step is None:
        return None
    return step.correctAnswer.strip().lower() == answer.strip().lower()


class ActivityPlanner:
    """
    Choisit la prochaine activité d'une session guidée.
    - LLM disponible : activité générée (JSON validé par ActivityPayload).
    - Sinon ou en cas d'échec : catalogue de démo (avec variante "retry" après une erreur).
    """

    def __init__(self, llm: Optional[LLMService] = None):
        self._llm = llm

    @property
    def llm(self) -> LLMService:
        return self._llm or get_llm()

    def plan_next(
        self,
        age_bracket: str,
        goal: str,
        previous_correct: Optional[bool] = None,
    ) -> PlannedActivity:
        base_intro = build_intro_message(age_bracket, goal, previous_correct)

        if self.llm.is_available():
            try:
                activity = self._generate_with_llm(age_bracket, goal, previous_correct)
                return PlannedActivity(intro_message=base_intro, activity=activity)
            except ValidationError as e:
                logger.warning("Invalid activity from LLM (%s). Fallback catalog.", e)
            except Exception as e:
                logger.warning("Activity generation failed: %s. Fallback catalog.", e)

        demo = self._pick_demo(goal, previous_correct)
        return PlannedActivity(
            intro_message=f"{base_intro} {demo.intro_message}".strip(),
            activity=demo.activity,
        )

    def _pick_demo(self, goal: str, was_correct: Optional[bool]) -> PlannedActivity:
        entry = DEMO_ACTIVITIES[catalog_key(goal)]
        if was_correct is False and entry.get("retry"):
            entry = entry["retry"]
        return PlannedActivity(
            intro_message=entry["intro"],
            activity=ActivityPayload.model_validate(copy.deepcopy(entry["activity"])),
        )

    def _generate_with_llm(self, age_bracket: str, goal: str, previous_correct: Optional[bool]) -> ActivityPayload:
        if previous_correct is True:
            pacing = "The child got the last one right: make it a little harder."
        elif previous_correct is False:
            pacing = "The child missed the last one: make it a little easier, with a gentle hint."
        else:
            pacing = "This is the first activity of the session."

        prompt = (
            "You are Sunny, a cheerful tutor planning one short learning activity for a child.\n"
            f"Age bracket: {age_bracket}. Learning goal: {goal}. {pacing}\n"
            'Return a JSON object {"type": "quiz"|"story"|"puzzle", "topic": "...", "goal": "...", '
            '"steps": [{"prompt": "...", "choices": ["..."], "correctAnswer": "...", "hint": "..."}]} '
            "with 1 to 3 steps. The first step must have a correctAnswer that is one of its choices."
        )
        data = self.llm.complete_json([{"role": "system", "content": prompt}], max_tokens=700)
        return ActivityPayload.model_validate(data)
