"""
Configuration pytest
====================
"""

import pytest
import sys
from pathlib import Path

# Ajouter le répertoire racine au path
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def sequence_log():
    """10 traces <a, b, c>."""
    from adaptive_miner.process_mining.log import Log
    return Log([('a', 'b', 'c')] * 10)


@pytest.fixture
def parallel_log():
    """5 traces <a, b> et 5 traces <b, a>."""
    from adaptive_miner.process_mining.log import Log
    return Log([('a', 'b')] * 5 + [('b', 'a')] * 5)


@pytest.fixture
def self_loop_log():
    """7 traces <a> et 3 traces <a, a>."""
    from adaptive_miner.process_mining.log import Log
    return Log([('a',)] * 7 + [('a', 'a')] * 3)


@pytest.fixture
def noisy_log():
    """100 traces <a, b> et une trace bruitée <a, x, b>."""
    from adaptive_miner.process_mining.log import Log
    return Log([('a', 'b')] * 100 + [('a', 'x', 'b')])


@pytest.fixture
def loop_log():
    """Boucle sur a avec deux parties redo (b et c)."""
    from adaptive_miner.process_mining.log import Log
    return Log([('a', 'b', 'a'), ('a', 'c', 'a'), ('a',), ('a', 'b', 'a', 'c', 'a')])


@pytest.fixture
def interleaved_log():
    """Deux blocs <a, b> et <c, d> exécutés dans un ordre quelconque."""
    from adaptive_miner.process_mining.log import Log
    return Log([('a', 'b', 'c', 'd')] * 5 + [('c', 'd', 'a', 'b')] * 5)


@pytest.fixture
def exact_state():
    """État sans filtrage du bruit."""
    from adaptive_miner.process_mining.config import build_parameters
    from adaptive_miner.process_mining.state import MinerState
    return MinerState(build_parameters(noise_threshold=0.0))


# Markers
def pytest_configure(config):
    """Configure les markers pytest."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: integration tests")
