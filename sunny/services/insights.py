"""
Analyse de fin de session ("brain analysis") : lecture des dernières réponses
pour qualifier la dynamique de l'élève, puis recommandations et badges.
"""
from __future__ import annotations

from typing import List

from sunny.services.difficulty import tier_index

RECENT_WINDOW = 5
# variance des temps de réponse (ms²) au-delà de laquelle le rythme est jugé irrégulier
TIME_VARIANCE_THRESHOLD = 10_000


def _variance(values: List[float]) -> float:
    if not values:
        return 0.0
    mean = sum(values) / len(values)
    return sum((v - mean) ** 2 for v in values) / len(values)


def _trailing(answers: List[dict], correct: bool) -> int:
    streak = 0
    for a in reversed(answers):
        if bool(a.get("correct")) != correct:
            break
        streak += 1
    return streak


def analyze_answers(answers: List[dict]) -> dict:
    if not answers:
        return {
            "performancePattern": "steady",
            "confidenceLevel": 50,
            "learningStyle": "methodical",
            "adaptationReason": "Waiting for initial data",
            "nextAction": "Continue monitoring",
            "insights": ["Starting assessment..."],
        }

    recent = answers[-RECENT_WINDOW:]
    times = [float(a.get("timeSpent") or 0) for a in recent]
    accuracy = sum(1 for a in recent if a.get("correct")) / len(recent)
    avg_time = sum(times) / len(times)
    variance = _variance(times)

    pattern = "steady"
    if accuracy >= 0.8:
        pattern = "excelling"
    elif accuracy <= 0.4:
        pattern = "struggling"
    elif variance > TIME_VARIANCE_THRESHOLD:
        pattern = "inconsistent"

    confidence = round(
        accuracy * 60
        + (20 if avg_time < 15_000 else 10 if avg_time < 30_000 else 0)
        + (20 if variance < 5_000 else 10)
    )

    style = "methodical"
    if avg_time < 8_000 and accuracy >= 0.6:
        style = "fast"
    elif accuracy < 0.5 or avg_time > 25_000:
        style = "needs-support"

    return {
        "performancePattern": pattern,
        "confidenceLevel": int(confidence),
        "learningStyle": style,
        "adaptationReason": _adaptation_reason(answers[-1]),
        "nextAction": _next_action(pattern, accuracy, style),
        "insights": _insights(answers),
    }


def _adaptation_reason(last: dict) -> str:
    seconds = float(last.get("timeSpent") or 0) / 1000
    if last.get("correct"):
        if seconds < 3:
            return f"Quick correct answer ({seconds:.1f}s) - strong understanding"
        if seconds > 20:
            return f"Correct but slow ({seconds:.1f}s) - thinking deeply, may need more practice"
        return f"Correct in {seconds:.1f}s - good pace and understanding"
    if seconds < 3:
        return f"Quick incorrect answer ({seconds:.1f}s) - possible rushing or guessing"
    if seconds > 20:
        return f"Incorrect after {seconds:.1f}s - struggling with this concept"
    return f"Incorrect in {seconds:.1f}s - needs scaffolding support"


def _next_action(pattern: str, accuracy: float, style: str) -> str:
    if pattern == "excelling":
        return "Increase difficulty to maintain engagement"
    if pattern == "struggling":
        return "Decrease difficulty to rebuild confidence"
    if style == "fast" and accuracy >= 0.7:
        return "Accelerate progression - student is ready"
    if style == "needs-support":
        return "Provide scaffolding and hints"
    return "Continue current approach - monitor closely"


def _insights(answers: List[dict]) -> List[str]:
    out: List[str] = []
    recent = answers[-RECENT_WINDOW:]

    seconds = [float(a.get("timeSpent") or 0) / 1000 for a in recent]
    avg = sum(seconds) / len(seconds)
    if max(seconds) - min(seconds) > 15:
        out.append(f"Variable pace: {min(seconds):.1f}s to {max(seconds):.1f}s - adapting to difficulty")
    elif avg < 5:
        out.append(f"Lightning fast ({avg:.1f}s avg) - strong confidence or rushing?")
    elif avg > 15:
        out.append(f"Thoughtful pace ({avg:.1f}s avg) - taking time to understand")
    else:
        out.append(f"Steady pace ({avg:.1f}s avg) - good balance of speed and accuracy")

    right = _trailing(answers, True)
    wrong = _trailing(answers, False)
    if right >= 3:
        out.append(f"Hot streak! {right} correct in a row - momentum building")
    elif wrong >= 2:
        out.append(f"{wrong} incorrect - may need a hint or an easier question")

    if len(answers) >= 4:
        half = len(answers) // 2
        first = sum(1 for a in answers[:half] if a.get("correct")) / half
        second = sum(1 for a in answers[half:] if a.get("correct")) / (len(answers) - half)
        if second > first + 0.2:
            out.append(f"Improving! Accuracy up from {first * 100:.0f}% to {second * 100:.0f}%")
        elif second < first - 0.2:
            out.append("Accuracy declining - may need a break or easier content")

    return out[:4]


def recommendations(topic: str, analysis: dict) -> List[str]:
    out: List[str] = []
    pattern = analysis.get("performancePattern")
    if pattern == "excelling":
        out += ["Ready for more challenging material!", f"Try advanced topics in {topic}"]
    elif pattern == "struggling":
        out += ["Let's review the basics", "Practice with easier questions first"]
    elif pattern == "steady":
        out += ["Great progress! Keep practicing", "Try mixing in some harder questions"]
    out += [f"Tip: {i}" for i in analysis.get("insights") or []]
    return out


def next_topics(topic: str) -> List[str]:
    return [f"Advanced {topic}", "Related concepts", "Real-world applications"]


def achievements(
    *,
    correct_answers: int,
    total_questions: int,
    questions_completed: int,
    avg_time_seconds: float,
    answers: List[dict],
    adjustments: List[dict],
    pattern: str,
) -> List[dict]:
    out: List[dict] = []

    if total_questions > 0 and correct_answers == total_questions:
        out.append({"id": "perfect_score", "title": "Perfect Score!", "description": "Answered all questions correctly!", "icon": "🏆"})

    if questions_completed > 0 and avg_time_seconds < 20:
        out.append({"id": "fast_learner", "title": "Speed Demon!", "description": "Completed questions in record time!", "icon": "🚀"})

    hints = sum(int(a.get("hintsUsed") or 0) for a in answers)
    if hints == 0 and questions_completed > 0:
        out.append({"id": "independent", "title": "Independent Thinker!", "description": "Solved all questions without hints!", "icon": "🧠"})

    if any(tier_index(adj.get("to")) > tier_index(adj.get("from")) for adj in adjustments):
        out.append({"id": "leveled_up", "title": "Leveled Up!", "description": "Difficulty increased during session!", "icon": "⬆️"})

    if pattern == "steady" and questions_completed > 0:
        out.append({"id": "persistent", "title": "Steady Progress!", "description": "Consistent performance throughout!", "icon": "💪"})

    return out
