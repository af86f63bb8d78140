"""Service layer — board operations, reconciliation, sync, and checks.

INVARIANT: All public service methods return ServiceResult.
The move reconciler is the exception: it raises domain errors, and
BoardService translates them.
"""
