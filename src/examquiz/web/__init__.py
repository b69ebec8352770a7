"""Web API for ExamQuiz.

FastAPI application exposing learners, exam questions, lesson content and
discussion threads.
"""
