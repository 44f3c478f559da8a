"""Tests for the NFT marketplace contract calls."""

import pytest
from eth_account import Account

from solverhub.errors import GatewayError, SubmissionRejected, UnconfirmedTransaction
from solverhub.nft.marketplace import MarketplaceContract

from conftest import MARKETPLACE_ADDRESS, SALE_TX_HASH, fake_web3

SALE_HASH_HEX = "0x" + SALE_TX_HASH.hex()


def contract_with(keys, web3) -> MarketplaceContract:
    return MarketplaceContract("http://eth.test", MARKETPLACE_ADDRESS, 1337, keys, web3=web3)


class TestExecuteSale:
    """Tests for executeSale."""

    @pytest.mark.asyncio
    async def test_transaction_fields(self, keys, eth_account):
        """Test the built transaction carries value, nonce, gas price and chain id."""
        web3 = fake_web3()

        tx_hash = await contract_with(keys, web3).execute_sale(3, 5 * 10**17)

        assert tx_hash == SALE_HASH_HEX
        functions = web3.eth.contract.return_value.functions
        functions.executeSale.assert_called_once_with(3)
        params = functions.executeSale.return_value.build_transaction.call_args.args[0]
        assert params == {
            "from": eth_account.address,
            "value": 5 * 10**17,
            "nonce": 4,
            "gasPrice": 2_000_000_000,
            "chainId": 1337,
        }
        web3.eth.get_transaction_count.assert_called_once_with(eth_account.address, "pending")

        raw = web3.eth.send_raw_transaction.call_args.args[0]
        assert Account.recover_transaction(raw) == eth_account.address
        web3.eth.wait_for_transaction_receipt.assert_called_once_with(
            web3.eth.send_raw_transaction.return_value, timeout=120
        )

    @pytest.mark.asyncio
    async def test_reverted_receipt(self, keys):
        """Test that a mined but reverted sale is rejected."""
        web3 = fake_web3(receipt_status=0)

        with pytest.raises(SubmissionRejected, match="reverted"):
            await contract_with(keys, web3).execute_sale(3, 1)

    @pytest.mark.asyncio
    async def test_receipt_timeout_keeps_hash(self, keys):
        """Test that a missing receipt after broadcast reports the hash."""
        web3 = fake_web3()
        web3.eth.wait_for_transaction_receipt.side_effect = TimeoutError("no receipt")

        with pytest.raises(UnconfirmedTransaction) as exc_info:
            await contract_with(keys, web3).execute_sale(3, 1)

        assert exc_info.value.tx_hash == SALE_HASH_HEX
        web3.eth.send_raw_transaction.assert_called_once()

    @pytest.mark.asyncio
    async def test_node_failure_before_broadcast(self, keys):
        """Test that a node failure before sending is a gateway error."""
        web3 = fake_web3()
        web3.eth.get_transaction_count.side_effect = ConnectionError("refused")

        with pytest.raises(GatewayError, match="refused") as exc_info:
            await contract_with(keys, web3).execute_sale(3, 1)

        assert not isinstance(exc_info.value, UnconfirmedTransaction)
        web3.eth.send_raw_transaction.assert_not_called()


class TestListToken:
    """Tests for listToken and the token counter."""

    @pytest.mark.asyncio
    async def test_pays_list_price(self, keys):
        """Test that listing pays the contract's listing fee."""
        web3 = fake_web3(list_price=10**16)

        tx_hash = await contract_with(keys, web3).list_token(7, 10**18)

        assert tx_hash == SALE_HASH_HEX
        functions = web3.eth.contract.return_value.functions
        functions.listToken.assert_called_once_with(7, 10**18)
        params = functions.listToken.return_value.build_transaction.call_args.args[0]
        assert params["value"] == 10**16

    @pytest.mark.asyncio
    async def test_next_token_id(self, keys):
        """Test the current and next token ids from the counter."""
        web3 = fake_web3(current_token=7)

        assert await contract_with(keys, web3).next_token_id() == (7, 8)
