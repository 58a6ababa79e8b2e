"""
Reference Lookups

Look-up-or-create for named reference rows and pool URL generation.
All functions take an explicit session; commit is left to the caller's
session scope.
"""

import logging
from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mining_data.storage.exceptions import MinerResolutionError, PoolNotFoundError
from mining_data.storage.models import Algorithm, Miner, Pool

logger = logging.getLogger(__name__)

POOL_URL_SCHEME = 'stratum+tcp://'


def find_miner(session: Session, name: str) -> Optional[Miner]:
    """Return the miner with this name, or None"""
    return session.execute(
        select(Miner).where(Miner.name == name).limit(1)
    ).scalar_one_or_none()


def ensure_miner(session: Session, name: str) -> int:
    """
    Verify the miner exists in the database. If not, create it.

    Args:
        session: Active database session
        name: Unique name of the mining hardware

    Returns:
        The ID associated with the miner

    Raises:
        MinerResolutionError: the lookup or insert failed
    """
    try:
        miner = find_miner(session, name)
    except SQLAlchemyError as e:
        logger.error(f"Unknown issue looking up miner {name}: {e}")
        raise MinerResolutionError(f"Unknown issue looking up miner {name}") from e

    if miner is not None:
        logger.debug(f"Found existing miner {name} (id={miner.id})")
        return miner.id

    logger.info(f"Creating miner {name}...")
    miner = Miner(name=name)
    try:
        # The savepoint keeps a failed insert from undoing the caller's work
        with session.begin_nested():
            session.add(miner)
            session.flush()
    except SQLAlchemyError as e:
        # Includes uq_miners_name violations from a concurrent creator
        logger.error(f"Issue creating miner {name}: {e}")
        raise MinerResolutionError(f"Issue creating miner {name}") from e

    return miner.id


def ensure_algorithm(session: Session, name: str) -> int:
    """Return the ID of the named algorithm, creating it on first sighting"""
    algorithm = session.execute(
        select(Algorithm).where(Algorithm.name == name).limit(1)
    ).scalar_one_or_none()

    if algorithm is None:
        logger.info(f"Creating algorithm {name}...")
        algorithm = Algorithm(name=name)
        session.add(algorithm)
        session.flush()

    return algorithm.id


def format_pool_url(pool: Pool) -> str:
    """Render the stratum URL for a pool"""
    return f"{POOL_URL_SCHEME}{pool.url}:{pool.port}"


def generate_pool_url(session: Session, algorithm_id: int) -> str:
    """
    Generate a URL for a pool supporting the algorithm.

    Any pool for the algorithm will do; the lowest pool ID wins so the
    choice is stable across calls.

    Args:
        session: Active database session
        algorithm_id: Database ID of the algorithm

    Returns:
        URL such as stratum+tcp://pool.example.com:3333

    Raises:
        PoolNotFoundError: no pool supports the algorithm
    """
    pool = session.execute(
        select(Pool)
        .where(Pool.algorithm_id == algorithm_id)
        .order_by(Pool.id)
        .limit(1)
    ).scalar_one_or_none()

    if pool is None:
        algorithm = session.get(Algorithm, algorithm_id)
        algorithm_name = algorithm.name if algorithm is not None else None
        logger.error(f"No pool found for algorithm {algorithm_name or algorithm_id}")
        raise PoolNotFoundError(algorithm_id, algorithm_name)

    return format_pool_url(pool)
