"""
Database models package
"""
from assessment_engine.models.quiz import Quiz
from assessment_engine.models.quiz_attempt import QuizAttempt
from assessment_engine.models.enrollment import Enrollment
from assessment_engine.models.lesson_progress import LessonProgress
from assessment_engine.models.course_progress import CourseProgress
from assessment_engine.models.certificate import Certificate

__all__ = ["Quiz", "QuizAttempt", "Enrollment", "LessonProgress", "CourseProgress", "Certificate"]
