"""
Pure reconciliation logic: title normalization, quality assessment,
franchise clustering, multi-source grouping and the denormalization engine.
"""
