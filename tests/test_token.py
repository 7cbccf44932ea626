"""
Behavioural tests for MyERC721EnumerableUpgradeable deployed behind a proxy.
"""
import pytest
from hypothesis import HealthCheck, given, settings

from tokenforge.chain.local_chain import LocalChain
from tokenforge.chain.upgrades import deploy_proxy
from tokenforge.contracts.access_control import DEFAULT_ADMIN_ROLE
from tokenforge.contracts.base import ZERO_ADDRESS
from tokenforge.contracts.errors import (
    AccessControlEnforcedDefaultAdminRules,
    AccessControlUnauthorizedAccount,
    ERC721IncorrectOwner,
    ERC721InvalidReceiver,
    ERC721InvalidSender,
    ERC721NonexistentToken,
    InvalidInitialization,
)
from tokenforge.contracts.token import ADMIN_ROLE, MyERC721EnumerableUpgradeable
from tokenforge.exceptions import InvalidArgumentError

from .conftest import signer_index_strategy, token_id_strategy

# ============================================================================
# INITIALIZATION
# ============================================================================

class TestInitialization:

    def test_sets_the_right_owner(self, token, admin):
        assert token.owner() == admin.address

    def test_grants_admin_role_to_owner(self, token, admin):
        admin_role = token.ADMIN_ROLE()
        assert token.has_role(admin_role, admin.address) is True

    def test_owner_holds_default_admin_role(self, token, admin):
        assert token.has_role(DEFAULT_ADMIN_ROLE, admin.address) is True

    def test_admin_role_is_keccak_of_name(self, token):
        assert token.ADMIN_ROLE() == ADMIN_ROLE
        assert len(ADMIN_ROLE) == 32

    def test_name_and_symbol(self, token):
        assert token.name() == "MyERC721Token"
        assert token.symbol() == "MTK"

    def test_initialize_cannot_run_twice(self, token, admin, user1):
        with pytest.raises(InvalidInitialization):
            token.connect(admin).initialize()
        with pytest.raises(InvalidInitialization):
            token.connect(user1).initialize()
        assert token.owner() == admin.address

    def test_fresh_deployment_has_no_tokens(self, token):
        assert token.total_supply() == 0


# ============================================================================
# MINTING
# ============================================================================

class TestMinting:

    def test_admin_can_mint(self, token, admin, user1):
        token.connect(admin).mint(user1.address, 1)
        assert token.owner_of(1) == user1.address

    def test_emits_minted_event(self, token, admin, user1):
        receipt = token.connect(admin).mint(user1.address, 1)
        assert receipt.emitted("Minted", user1.address, 1)
        assert receipt.emitted("Transfer", ZERO_ADDRESS, user1.address, 1)

    def test_non_admin_cannot_mint(self, token, user1):
        with pytest.raises(AccessControlUnauthorizedAccount) as exc_info:
            token.connect(user1).mint(user1.address, 1)

        assert exc_info.value.account == user1.address
        assert exc_info.value.needed_role == ADMIN_ROLE

    def test_failed_mint_leaves_no_trace(self, token, chain, user1):
        block = chain.block_number
        with pytest.raises(AccessControlUnauthorizedAccount):
            token.connect(user1).mint(user1.address, 1)

        assert chain.block_number == block
        assert chain.get_logs(event="Minted") == []
        with pytest.raises(ERC721NonexistentToken):
            token.owner_of(1)

    def test_cannot_mint_existing_id(self, minted_token, admin, user2):
        with pytest.raises(ERC721InvalidSender):
            minted_token.connect(admin).mint(user2.address, 1)
        assert minted_token.owner_of(1) != user2.address

    def test_cannot_mint_to_zero_address(self, token, admin):
        with pytest.raises(ERC721InvalidReceiver):
            token.connect(admin).mint(ZERO_ADDRESS, 1)

    @settings(max_examples=25, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(token_id=token_id_strategy(), recipient=signer_index_strategy())
    def test_mint_then_owner_of_returns_recipient(self, chain, token, admin, token_id, recipient):
        snapshot = chain.snapshot()
        user = chain.signers[recipient]

        token.connect(admin).mint(user.address, token_id)

        assert token.owner_of(token_id) == user.address
        assert token.balance_of(user.address) == 1
        chain.revert(snapshot)


# ============================================================================
# BURNING
# ============================================================================

class TestBurning:

    def test_admin_can_burn(self, minted_token, admin, user1):
        minted_token.connect(admin).burn(user1.address, 1)

        with pytest.raises(ERC721NonexistentToken) as exc_info:
            minted_token.owner_of(1)
        assert exc_info.value.token_id == 1

    def test_emits_burned_event(self, minted_token, admin, user1):
        receipt = minted_token.connect(admin).burn(user1.address, 1)
        assert receipt.emitted("Burned", user1.address, 1)
        assert receipt.emitted("Transfer", user1.address, ZERO_ADDRESS, 1)

    def test_non_admin_cannot_burn(self, minted_token, user1, user2):
        with pytest.raises(AccessControlUnauthorizedAccount):
            minted_token.connect(user2).burn(user1.address, 1)
        assert minted_token.owner_of(1) == user1.address

    def test_holder_cannot_burn_own_token(self, minted_token, user1):
        with pytest.raises(AccessControlUnauthorizedAccount):
            minted_token.connect(user1).burn(user1.address, 1)
        assert minted_token.owner_of(1) == user1.address

    def test_burn_with_wrong_owner_reverts(self, minted_token, admin, user1, user2):
        with pytest.raises(ERC721IncorrectOwner):
            minted_token.connect(admin).burn(user2.address, 1)
        assert minted_token.owner_of(1) == user1.address

    def test_burn_nonexistent_token_reverts(self, token, admin, user1):
        with pytest.raises(ERC721NonexistentToken):
            token.connect(admin).burn(user1.address, 42)

    def test_burned_id_can_be_minted_again(self, minted_token, admin, user1, user2):
        minted_token.connect(admin).burn(user1.address, 1)
        minted_token.connect(admin).mint(user2.address, 1)
        assert minted_token.owner_of(1) == user2.address


# ============================================================================
# ADMIN TRANSFERS
# ============================================================================

class TestAdminTransfers:

    def test_admin_can_transfer_by_burning_and_minting(self, minted_token, admin, user1, user2):
        minted_token.connect(admin).admin_transfer(user1.address, user2.address, 1)
        assert minted_token.owner_of(1) == user2.address

    def test_emits_events_on_admin_transfer(self, minted_token, admin, user1, user2):
        receipt = minted_token.connect(admin).admin_transfer(user1.address, user2.address, 1)

        assert receipt.emitted("AdminTransfer", user1.address, user2.address, 1)
        # Observable as burn followed by mint
        transfers = [event.args for event in receipt.events("Transfer")]
        assert transfers == [
            (user1.address, ZERO_ADDRESS, 1),
            (ZERO_ADDRESS, user2.address, 1),
        ]

    def test_non_admin_cannot_admin_transfer(self, minted_token, user1, user2):
        with pytest.raises(AccessControlUnauthorizedAccount):
            minted_token.connect(user1).admin_transfer(user1.address, user2.address, 1)
        assert minted_token.owner_of(1) == user1.address

    def test_admin_transfer_from_wrong_owner_reverts(self, minted_token, admin, user1, user2):
        with pytest.raises(ERC721IncorrectOwner):
            minted_token.connect(admin).admin_transfer(user2.address, admin.address, 1)
        assert minted_token.owner_of(1) == user1.address

    def test_admin_transfer_to_zero_address_is_atomic(self, minted_token, admin, user1):
        with pytest.raises(ERC721InvalidReceiver):
            minted_token.connect(admin).admin_transfer(user1.address, ZERO_ADDRESS, 1)
        # The burn half was rolled back
        assert minted_token.owner_of(1) == user1.address
        assert minted_token.total_supply() == 1

    def test_admin_transfer_updates_balances_and_enumeration(self, minted_token, admin, user1, user2):
        minted_token.connect(admin).admin_transfer(user1.address, user2.address, 1)

        assert minted_token.balance_of(user1.address) == 0
        assert minted_token.balance_of(user2.address) == 1
        assert minted_token.token_of_owner_by_index(user2.address, 0) == 1
        assert minted_token.total_supply() == 1


# ============================================================================
# ROLE MANAGEMENT
# ============================================================================

class TestRoleManagement:

    def test_owner_can_grant_admin_role(self, token, admin, user1):
        admin_role = token.ADMIN_ROLE()
        token.connect(admin).add_admin(user1.address)
        assert token.has_role(admin_role, user1.address) is True

    def test_owner_can_revoke_admin_role(self, token, admin, user1):
        admin_role = token.ADMIN_ROLE()
        token.connect(admin).add_admin(user1.address)
        token.connect(admin).remove_admin(user1.address)
        assert token.has_role(admin_role, user1.address) is False

    def test_non_owner_cannot_manage_roles(self, token, user1, user2):
        with pytest.raises(AccessControlUnauthorizedAccount):
            token.connect(user1).add_admin(user2.address)
        with pytest.raises(AccessControlUnauthorizedAccount):
            token.connect(user1).remove_admin(user2.address)
        assert token.has_role(ADMIN_ROLE, user2.address) is False

    def test_granted_admin_cannot_manage_roles(self, token, admin, user1, user2):
        token.connect(admin).add_admin(user1.address)

        with pytest.raises(AccessControlUnauthorizedAccount) as exc_info:
            token.connect(user1).add_admin(user2.address)
        assert exc_info.value.needed_role == DEFAULT_ADMIN_ROLE

    def test_granted_admin_can_mint(self, token, admin, user1, user2):
        token.connect(admin).add_admin(user1.address)
        token.connect(user1).mint(user2.address, 7)
        assert token.owner_of(7) == user2.address

    def test_revoked_admin_loses_privileges(self, token, admin, user1, user2):
        token.connect(admin).add_admin(user1.address)
        token.connect(admin).remove_admin(user1.address)
        with pytest.raises(AccessControlUnauthorizedAccount):
            token.connect(user1).mint(user2.address, 7)

    def test_role_events(self, token, admin, user1):
        granted = token.connect(admin).add_admin(user1.address)
        revoked = token.connect(admin).remove_admin(user1.address)

        assert granted.emitted("RoleGranted", ADMIN_ROLE, user1.address, admin.address)
        assert revoked.emitted("RoleRevoked", ADMIN_ROLE, user1.address, admin.address)

    def test_adding_existing_admin_is_a_noop(self, token, admin):
        receipt = token.connect(admin).add_admin(admin.address)
        assert receipt.events("RoleGranted") == []

    def test_grant_role_is_owner_only(self, token, admin, user1, user2):
        token.connect(admin).add_admin(user1.address)
        with pytest.raises(AccessControlUnauthorizedAccount):
            token.connect(user1).grant_role(ADMIN_ROLE, user2.address)

        token.connect(admin).grant_role(ADMIN_ROLE, user2.address)
        assert token.has_role(ADMIN_ROLE, user2.address)

    def test_admin_can_renounce_own_role(self, token, admin, user1):
        token.connect(admin).add_admin(user1.address)
        token.connect(user1).renounce_role(ADMIN_ROLE, user1.address)
        assert token.has_role(ADMIN_ROLE, user1.address) is False

    def test_ownership_transfer_moves_role_management(self, token, admin, user1, user2):
        token.connect(admin).transfer_ownership(user1.address)

        assert token.owner() == user1.address
        assert token.has_role(DEFAULT_ADMIN_ROLE, user1.address)
        assert not token.has_role(DEFAULT_ADMIN_ROLE, admin.address)

        token.connect(user1).add_admin(user2.address)
        with pytest.raises(AccessControlUnauthorizedAccount):
            token.connect(admin).remove_admin(user2.address)

    def test_owner_cannot_renounce_default_admin_role(self, token, admin):
        with pytest.raises(AccessControlEnforcedDefaultAdminRules):
            token.connect(admin).renounce_role(DEFAULT_ADMIN_ROLE, admin.address)
        assert token.has_role(DEFAULT_ADMIN_ROLE, admin.address)

    def test_owner_cannot_revoke_own_default_admin_role(self, token, admin):
        with pytest.raises(AccessControlEnforcedDefaultAdminRules):
            token.connect(admin).revoke_role(DEFAULT_ADMIN_ROLE, admin.address)
        assert token.has_role(DEFAULT_ADMIN_ROLE, admin.address)

    def test_renounced_ownership_drops_default_admin_role(self, token, admin):
        token.connect(admin).renounce_ownership()
        assert token.owner() == ZERO_ADDRESS
        assert not token.has_role(DEFAULT_ADMIN_ROLE, admin.address)


# ============================================================================
# TOKEN TRANSFER RESTRICTIONS
# ============================================================================

class TestTransferRestrictions:

    def test_regular_users_cannot_transfer(self, minted_token, user1, user2):
        with pytest.raises(AccessControlUnauthorizedAccount):
            minted_token.connect(user1).transfer_from(user1.address, user2.address, 1)
        assert minted_token.owner_of(1) == user1.address

    def test_regular_users_cannot_safe_transfer(self, minted_token, user1, user2):
        with pytest.raises(AccessControlUnauthorizedAccount):
            minted_token.connect(user1).safe_transfer_from(user1.address, user2.address, 1)
        assert minted_token.owner_of(1) == user1.address

    def test_approved_operator_without_role_cannot_transfer(self, minted_token, user1, user2):
        minted_token.connect(user1).approve(user2.address, 1)
        with pytest.raises(AccessControlUnauthorizedAccount):
            minted_token.connect(user2).transfer_from(user1.address, user2.address, 1)

    def test_admin_holder_can_transfer_own_token(self, token, admin, user1):
        token.connect(admin).mint(admin.address, 5)
        token.connect(admin).transfer_from(admin.address, user1.address, 5)
        assert token.owner_of(5) == user1.address


# ============================================================================
# ISOLATION BETWEEN DEPLOYMENTS
# ============================================================================

def test_independent_proxies_do_not_share_state(chain, admin, user1):
    first = deploy_proxy(chain, admin, MyERC721EnumerableUpgradeable)
    second = deploy_proxy(chain, admin, MyERC721EnumerableUpgradeable)

    first.connect(admin).mint(user1.address, 1)

    assert first.owner_of(1) == user1.address
    with pytest.raises(ERC721NonexistentToken):
        second.owner_of(1)


def test_deployer_other_than_first_signer_becomes_owner():
    chain = LocalChain()
    deployer = chain.signers[3]
    token = deploy_proxy(chain, deployer, MyERC721EnumerableUpgradeable)

    assert token.owner() == deployer.address
    assert token.has_role(ADMIN_ROLE, deployer.address)
    assert not token.has_role(ADMIN_ROLE, chain.signers[0].address)


# ============================================================================
# ARGUMENT ENCODING
# ============================================================================

class TestArgumentEncoding:

    @pytest.mark.parametrize("token_id", [-1, 2 ** 256, "1", 1.0, True])
    def test_mint_rejects_ids_outside_uint256(self, token, admin, user1, token_id):
        with pytest.raises(InvalidArgumentError) as exc_info:
            token.connect(admin).mint(user1.address, token_id)

        assert exc_info.value.parameter == "token_id"
        assert exc_info.value.expected == "uint256"
        assert token.total_supply() == 0

    def test_mint_accepts_largest_uint256(self, token, admin, user1):
        token.connect(admin).mint(user1.address, 2 ** 256 - 1)
        assert token.owner_of(2 ** 256 - 1) == user1.address

    @pytest.mark.parametrize("to", ["not-an-address", "0x1234", "", None])
    def test_mint_rejects_malformed_recipient(self, token, admin, to):
        with pytest.raises(InvalidArgumentError) as exc_info:
            token.connect(admin).mint(to, 3)

        assert exc_info.value.parameter == "to"
        assert token.total_supply() == 0

    def test_bad_checksum_is_rejected(self, token, admin, user1):
        address = user1.address
        # Flip the case of the first letter in the hex body
        index = next(i for i, c in enumerate(address) if i > 1 and c.isalpha())
        broken = address[:index] + address[index].swapcase() + address[index + 1:]

        with pytest.raises(InvalidArgumentError):
            token.connect(admin).mint(broken, 3)

    def test_lowercase_address_is_checksummed(self, token, admin, user1):
        token.connect(admin).mint(user1.address.lower(), 3)

        assert token.owner_of(3) == user1.address
        assert token.balance_of(user1.address) == 1
        assert token.token_of_owner_by_index(user1.address, 0) == 3

    def test_view_arguments_are_checked(self, minted_token):
        with pytest.raises(InvalidArgumentError):
            minted_token.owner_of(-1)
        with pytest.raises(InvalidArgumentError):
            minted_token.has_role(b"short", ZERO_ADDRESS)

    def test_rejected_call_leaves_no_receipt(self, chain, token, admin, user1):
        block = chain.block_number
        nonce = chain.get_nonce(admin)

        with pytest.raises(InvalidArgumentError):
            token.connect(admin).admin_transfer(user1.address, "nobody", 1)

        assert chain.block_number == block
        assert chain.get_nonce(admin) == nonce
