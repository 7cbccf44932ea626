"""
Pytest configuration and fixtures for tokenforge tests.
"""
import pytest
from hypothesis import strategies as st
from loguru import logger

from tokenforge.chain.local_chain import LocalChain
from tokenforge.chain.upgrades import deploy_proxy
from tokenforge.contracts.token import MyERC721EnumerableUpgradeable
from tokenforge.settings import Settings

# ============================================================================
# HYPOTHESIS STRATEGIES
# ============================================================================


@st.composite
def token_id_strategy(draw, max_value=2 ** 256 - 1):
    """Generate valid uint256 token ids."""
    return draw(st.integers(min_value=0, max_value=max_value))


@st.composite
def signer_index_strategy(draw, low=1, high=5):
    """Pick a non-deployer signer index."""
    return draw(st.integers(min_value=low, max_value=high))


# ============================================================================
# FIXTURES - Chain and accounts
# ============================================================================

@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep loguru output out of test reports."""
    logger.remove()
    yield
    logger.remove()


@pytest.fixture
def chain():
    """Fresh local chain with the default development accounts."""
    return LocalChain()


@pytest.fixture
def accounts(chain):
    """(admin, user1, user2) - mirrors ethers.getSigners()."""
    admin, user1, user2 = chain.get_signers()[:3]
    return admin, user1, user2


@pytest.fixture
def admin(accounts):
    return accounts[0]


@pytest.fixture
def user1(accounts):
    return accounts[1]


@pytest.fixture
def user2(accounts):
    return accounts[2]


# ============================================================================
# FIXTURES - Token deployments
# ============================================================================

@pytest.fixture
def token(chain, admin):
    """Token deployed behind a proxy and initialized by admin."""
    return deploy_proxy(chain, admin, MyERC721EnumerableUpgradeable)


@pytest.fixture
def minted_token(token, admin, user1):
    """Token with id 1 minted to user1."""
    token.connect(admin).mint(user1.address, 1)
    return token


@pytest.fixture
def test_settings():
    """Settings isolated from the developer's .env and environment."""
    return Settings(_env_file=None, log_file="", secret="", network="hardhat", explorer_api_key="")
