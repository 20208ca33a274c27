"""
Réconciliation des inscriptions d'un élève.

Ordre imposé:
  1) fusion des matières demandées avec celles déjà suivies
  2) filtrage des épreuves demandées contre l'ensemble de matières *fusionné*
  3) une seule écriture de l'élève

Les ids inconnus et les épreuves refusées ne font jamais échouer la requête:
ils sont rapportés dans ReconciliationOutcome. Seul un élève inexistant
(NotFound) interrompt tout, avant la moindre mutation.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from core.exceptions import NotFound
from .store import DjangoEntityStore, EntityStore

logger = logging.getLogger(__name__)

# borne de BigAutoField: au-delà, aucun enregistrement ne peut exister
MAX_ID = 2 ** 63 - 1


@dataclass
class MergeResult:
    merged: set
    not_found: list = field(default_factory=list)


@dataclass(frozen=True)
class ExamRejection:
    exam_id: int
    exam_name: str
    subject_id: int
    subject_name: str


@dataclass
class ExamFilterResult:
    merged: set
    accepted: set = field(default_factory=set)
    not_found: list = field(default_factory=list)
    rejected_subjects: set = field(default_factory=set)
    rejections: list = field(default_factory=list)


@dataclass
class ReconciliationOutcome:
    student: object
    not_found_subject_ids: list = field(default_factory=list)
    not_found_exam_ids: list = field(default_factory=list)
    rejections: list = field(default_factory=list)
    rejected_subjects: set = field(default_factory=set)

    @property
    def message(self) -> Optional[str]:
        return render_rejection_message(self.rejections)

    @property
    def is_partial(self) -> bool:
        # les épreuves refusées seules ne rendent pas la réponse partielle
        return bool(self.not_found_subject_ids or self.not_found_exam_ids)


def _unique_ids(ids: Iterable) -> list:
    """Dédoublonne en gardant l'ordre de première apparition."""
    seen, out = set(), []
    for raw in ids or ():
        i = int(raw)
        if i not in seen:
            seen.add(i)
            out.append(i)
    return out


def _resolve(requested_ids, fetch):
    ids = _unique_ids(requested_ids)
    if not ids:
        return [], []
    found = fetch([i for i in ids if i <= MAX_ID])
    found_ids = {obj.pk for obj in found}
    return found, [i for i in ids if i not in found_ids]


def merge_subjects(existing: set, requested_ids, store: EntityStore) -> MergeResult:
    found, not_found = _resolve(requested_ids, store.find_subjects_by_id)
    return MergeResult(merged=set(existing) | set(found), not_found=not_found)


def filter_exams(student_subjects: set, existing: set, requested_ids, store: EntityStore) -> ExamFilterResult:
    """
    `student_subjects` doit être l'ensemble APRÈS merge_subjects, pour que
    matières et épreuves envoyées dans la même requête soient cohérentes.
    """
    found, not_found = _resolve(requested_ids, store.find_exams_by_id)
    result = ExamFilterResult(merged=set(existing), not_found=not_found)

    enrolled_ids = {s.pk for s in student_subjects}
    for exam in sorted(found, key=lambda e: e.pk):
        if exam.subject_id in enrolled_ids:
            result.accepted.add(exam)
        else:
            result.rejected_subjects.add(exam.subject)
            result.rejections.append(ExamRejection(
                exam_id=exam.pk,
                exam_name=exam.name,
                subject_id=exam.subject_id,
                subject_name=exam.subject.name,
            ))

    result.merged |= result.accepted
    return result


def render_rejection_message(rejections) -> Optional[str]:
    if not rejections:
        return None
    return " ".join(
        f"Exam '{r.exam_name}' (id={r.exam_id}) rejected: "
        f"student is not enrolled in subject '{r.subject_name}' (id={r.subject_id})."
        for r in rejections
    )


def reconcile_student(student_id, name=None, subject_ids=None, exam_ids=None,
                      store: Optional[EntityStore] = None) -> ReconciliationOutcome:
    store = store or DjangoEntityStore()

    student = store.get_student(student_id)
    if student is None:
        raise NotFound("Student not found")

    if name:
        student.name = name

    subjects = merge_subjects(store.enrolled_subjects(student), subject_ids, store)
    exams = filter_exams(subjects.merged, store.enrolled_exams(student), exam_ids, store)

    student = store.save_student(student, subjects.merged, exams.merged)

    outcome = ReconciliationOutcome(
        student=student,
        not_found_subject_ids=subjects.not_found,
        not_found_exam_ids=exams.not_found,
        rejections=exams.rejections,
        rejected_subjects=exams.rejected_subjects,
    )

    if outcome.is_partial:
        logger.warning(
            "Student %s: unresolved subject ids %s, exam ids %s",
            student.pk, outcome.not_found_subject_ids, outcome.not_found_exam_ids,
        )
    if outcome.rejections:
        logger.warning(
            "Student %s: %d exam(s) rejected for subjects %s",
            student.pk, len(outcome.rejections),
            sorted(s.pk for s in outcome.rejected_subjects),
        )
    logger.info(
        "Reconciled student %s: %d subjects, %d exams",
        student.pk, len(subjects.merged), len(exams.merged),
    )
    return outcome
