"""Regulation readiness assessment from questionnaire answers."""

from __future__ import annotations

import logging

from ..errors import NoQuestionsError
from ..models.entities import ClientReadinessResponse, Regulation
from ..models.readiness import NOT_ANSWERED, QuestionVerdict, ReadinessResult
from ..utils.numbers import percentage

logger = logging.getLogger(__name__)

COMPLIANT_RESPONSE = "yes"


def assess_readiness(
    regulation: Regulation,
    answers: list[ClientReadinessResponse],
) -> ReadinessResult:
    """Score a client's answers against a regulation's questionnaire.

    Only an answer of exactly ``"yes"`` is compliant. Unanswered questions
    are not compliant either, but keep the ``"Not Answered"`` label so they
    stay distinguishable from explicit negative answers.

    Raises:
        NoQuestionsError: the regulation has no questionnaire.
    """
    questions = regulation.questions or []
    if not questions:
        raise NoQuestionsError(regulation.id)

    answer_map: dict[str, str] = {}
    foreign = 0
    for a in answers:
        if a.regulation_id != regulation.id:
            foreign += 1
            continue
        answer_map[a.question_id] = a.response
    if foreign:
        logger.debug("Ignored %d answer(s) for regulations other than %s", foreign, regulation.id)

    verdicts: list[QuestionVerdict] = []
    compliant_count = 0
    answered = 0

    for q in questions:
        response = answer_map.get(q.id)
        compliant = response == COMPLIANT_RESPONSE
        if compliant:
            compliant_count += 1
        if response:
            answered += 1

        verdicts.append(QuestionVerdict(
            question_id=q.id,
            text=q.text,
            compliant=compliant,
            answer=response or NOT_ANSWERED,
            guidance=None if compliant else q.failure_guidance,
        ))

    return ReadinessResult(
        regulation_id=regulation.id,
        regulation_name=regulation.name,
        score=percentage(compliant_count, len(questions)),
        answered=answered,
        total_questions=len(questions),
        per_question=verdicts,
    )
