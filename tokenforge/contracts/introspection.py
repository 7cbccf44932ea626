"""ERC-165 interface detection."""

from tokenforge.contracts.base import view
from tokenforge.contracts.initializable import Initializable

IERC165_INTERFACE_ID = bytes.fromhex("01ffc9a7")


class ERC165Upgradeable(Initializable):

    @view
    def supports_interface(self, interface_id: bytes) -> bool:
        return interface_id == IERC165_INTERFACE_ID
