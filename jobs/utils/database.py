"""Database session factory for jobs."""

from referral_engine.config.database import create_engine, create_session_maker


def create_task_engine():
    """
    Create engine for use in actors.

    Each actor run uses a fresh event loop, so connections are not pooled.
    """
    return create_engine(pooled=False)


def create_task_session_maker(engine=None):
    """Create session maker for actors."""
    if engine is None:
        engine = create_task_engine()
    return create_session_maker(engine)


task_engine = create_task_engine()
task_session_maker = create_task_session_maker(task_engine)
