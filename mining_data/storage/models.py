"""
SQLAlchemy Database Models

ORM models shared by the mining automation tools: pools and their
statistics, coins and prices, miner hardware, miner software and
miner statistics.

Hash-rate scale factor (mh_factor) convention used throughout:
1 = MH/s, 0.001 = kH/s, 1000 = GH/s.
"""

from sqlalchemy import (
    Column, Integer, BigInteger, String, Float, Boolean,
    TIMESTAMP, Text, ForeignKey, Index, UniqueConstraint, func
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

# Bump whenever the models below change in a way that needs a migration.
SCHEMA_VERSION = 2

# Name of the Version row tracking this catalog.
DATABASE_VERSION_NAME = 'database'


# ============================================================================
# SCHEMA VERSION
# ============================================================================

class Version(Base):
    """Applied schema version, one row per name"""
    __tablename__ = 'versions'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    version = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint('name', name='uq_versions_name'),
    )

    def __repr__(self):
        return f"<Version(name={self.name}, version={self.version})>"


# ============================================================================
# POOLS
# ============================================================================

class Algorithm(Base):
    """
    A mining algorithm such as scrypt.

    Only algorithms supported by a pool provider belong here; the table maps
    between pools and the naming used by each miner software.
    """
    __tablename__ = 'algorithms'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)

    pools = relationship("Pool", back_populates="algorithm")

    __table_args__ = (
        UniqueConstraint('name', name='uq_algorithms_name'),
    )

    def __repr__(self):
        return f"<Algorithm(name={self.name})>"


class Provider(Base):
    """A pool provider such as ZergPool"""
    __tablename__ = 'providers'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    website = Column(String(255))
    fee = Column(Float)  # Percentage

    pools = relationship("Pool", back_populates="provider")

    def __repr__(self):
        return f"<Provider(name={self.name}, fee={self.fee}%)>"


class Pool(Base):
    """A mining pool for a single algorithm"""
    __tablename__ = 'pools'

    id = Column(Integer, primary_key=True, autoincrement=True)
    provider_id = Column(Integer, ForeignKey('providers.id'), nullable=False)
    algorithm_id = Column(Integer, ForeignKey('algorithms.id'), nullable=False)

    # The name will not necessarily match the algorithm
    name = Column(String(100))
    url = Column(String(255), nullable=False)  # Host only, no scheme or port
    port = Column(Integer, nullable=False)

    mh_factor = Column(Float, default=1.0)

    provider = relationship("Provider", back_populates="pools")
    algorithm = relationship("Algorithm", back_populates="pools")

    __table_args__ = (
        Index('idx_pools_algorithm', 'algorithm_id'),
    )

    def normalize_hashrate(self, value):
        """Convert a hashrate reported in this pool's unit to MH/s."""
        return value * (self.mh_factor if self.mh_factor is not None else 1.0)

    def __repr__(self):
        return f"<Pool(name={self.name}, url={self.url}, port={self.port})>"


class PoolStats(Base):
    """Point-in-time statistics for a pool (append-only)"""
    __tablename__ = 'pool_stats'

    id = Column(Integer, primary_key=True, autoincrement=True)
    pool_id = Column(Integer, ForeignKey('pools.id'), nullable=False)
    instant = Column(TIMESTAMP, nullable=False, server_default=func.now())

    current_hashrate = Column(BigInteger)  # Shared hashrate for the pool
    workers = Column(Integer)

    profit_estimate = Column(Float)  # Forward look at profit/day
    profit_actual_24_hours = Column('profit_actual24_hours', Float)  # Actual profit/day over the last 24h

    # The coin price used for the estimate, if any. Usually bitcoin.
    coin_price_id = Column(Integer, ForeignKey('coin_prices.id'))

    pool = relationship("Pool")
    coin_price = relationship("CoinPrice")

    __table_args__ = (
        Index('idx_pool_stats_pool_instant', 'pool_id', 'instant'),
    )

    def __repr__(self):
        return f"<PoolStats(pool_id={self.pool_id}, estimate={self.profit_estimate})>"


# ============================================================================
# COINS
# ============================================================================

class Coin(Base):
    """A crypto coin"""
    __tablename__ = 'coins'

    id = Column(Integer, primary_key=True, autoincrement=True)
    coin_gecko_id = Column(String(100))
    name = Column(String(100))
    symbol = Column(String(20))
    added = Column(TIMESTAMP, server_default=func.now())  # Used to track new coins

    prices = relationship("CoinPrice", back_populates="coin")

    def __repr__(self):
        return f"<Coin(symbol={self.symbol}, name={self.name})>"


class CoinPrice(Base):
    """A USD price sample for a coin. Not OHLC over a range."""
    __tablename__ = 'coin_prices'

    id = Column(Integer, primary_key=True, autoincrement=True)
    coin_id = Column(Integer, ForeignKey('coins.id'), nullable=False)
    instant = Column(TIMESTAMP, nullable=False, server_default=func.now())
    price = Column(Float, nullable=False)

    coin = relationship("Coin", back_populates="prices")

    __table_args__ = (
        Index('idx_coin_prices_coin_instant', 'coin_id', 'instant'),
    )

    def __repr__(self):
        return f"<CoinPrice(coin_id={self.coin_id}, price=${self.price})>"


# ============================================================================
# MINERS
# ============================================================================

class Miner(Base):
    """Mining hardware, identified by a unique name"""
    __tablename__ = 'miners'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)

    # Software/algorithm pairing currently (or last) running on the miner
    current_software_algo_id = Column(Integer, ForeignKey('miner_software_algos.id'))

    current_software_algo = relationship("MinerSoftwareAlgos")
    installations = relationship("MinerMinerSoftware", back_populates="miner")

    __table_args__ = (
        UniqueConstraint('name', name='uq_miners_name'),
    )

    def __repr__(self):
        return f"<Miner(name={self.name})>"


class MinerSoftware(Base):
    """Software executed on a miner to mine"""
    __tablename__ = 'miner_softwares'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)  # lolMiner, cpuminer-opt, etc.
    website = Column(String(255))

    # Matched against running executables to detect the software in use.
    # Should be a prefix, e.g. minerExec for minerExecv1.2.3.exe.
    executable_prefix = Column(String(100))

    # Parameter names only, never values, e.g. --algo
    algo_param = Column(String(50))
    pool_param = Column(String(50))
    wallet_param = Column(String(50))
    password_param = Column(String(50))
    file_param = Column(String(50))  # Log file

    other_params = Column(Text)  # Appended to the command line as-is

    # Initial output lines to ignore while the hashrate settles
    discard_lines = Column(Integer, default=0)

    algos = relationship("MinerSoftwareAlgos", back_populates="miner_software")

    def __repr__(self):
        return f"<MinerSoftware(name={self.name}, prefix={self.executable_prefix})>"


class MinerSoftwareAlgos(Base):
    """
    Algorithms supported by a miner software, with the software's own name
    for each one.
    """
    __tablename__ = 'miner_software_algos'

    id = Column(Integer, primary_key=True, autoincrement=True)
    miner_software_id = Column(Integer, ForeignKey('miner_softwares.id'), nullable=False)
    algorithm_id = Column(Integer, ForeignKey('algorithms.id'), nullable=False)

    # Blank means Algorithm.name is used
    name = Column(String(100))
    extra_params = Column(Text)

    # Do not select this pairing during automated optimization
    exclude = Column(Boolean, default=False)

    miner_software = relationship("MinerSoftware", back_populates="algos")
    algorithm = relationship("Algorithm")

    __table_args__ = (
        Index('idx_miner_software_algos_pair', 'miner_software_id', 'algorithm_id'),
    )

    @property
    def algorithm_name(self):
        """Value passed to the software's algorithm parameter"""
        if self.name and self.name.strip():
            return self.name
        return self.algorithm.name if self.algorithm is not None else None

    def __repr__(self):
        return f"<MinerSoftwareAlgos(software={self.miner_software_id}, algorithm={self.algorithm_id}, exclude={self.exclude})>"


class MinerMinerSoftware(Base):
    """Installation of a miner software on a specific miner"""
    __tablename__ = 'miner_miner_softwares'

    id = Column(Integer, primary_key=True, autoincrement=True)
    miner_id = Column(Integer, ForeignKey('miners.id'), nullable=False)
    miner_software_id = Column(Integer, ForeignKey('miner_softwares.id'), nullable=False)
    filepath = Column(String(500))

    miner = relationship("Miner", back_populates="installations")
    miner_software = relationship("MinerSoftware")

    def __repr__(self):
        return f"<MinerMinerSoftware(miner={self.miner_id}, software={self.miner_software_id}, path={self.filepath})>"


class MinerStats(Base):
    """Hashrate observation for a miner, software and algorithm (append-only)"""
    __tablename__ = 'miner_stats'

    id = Column(Integer, primary_key=True, autoincrement=True)
    miner_id = Column(Integer, ForeignKey('miners.id'), nullable=False)
    miner_software_id = Column(Integer, ForeignKey('miner_softwares.id'), nullable=False)
    algorithm_id = Column(Integer, ForeignKey('algorithms.id'), nullable=False)
    instant = Column(TIMESTAMP, nullable=False, server_default=func.now())

    work_per_second = Column(Float, nullable=False)  # Unit given by mh_factor
    mh_factor = Column(Float, default=1.0)

    __table_args__ = (
        Index('idx_miner_stats_lookup', 'miner_id', 'miner_software_id', 'algorithm_id'),
        Index('idx_miner_stats_instant', 'instant'),
    )

    @property
    def hashrate_mh(self):
        """work_per_second in MH/s"""
        return self.work_per_second * (self.mh_factor if self.mh_factor is not None else 1.0)

    def __repr__(self):
        return f"<MinerStats(miner={self.miner_id}, algorithm={self.algorithm_id}, rate={self.work_per_second})>"
