import pytest

from surecast.data.chains import ARBITRUM, CHAIN_CONFIGS
from surecast.errors import ChainSwitchError, WalletError
from surecast.wallet import switch_chain


@pytest.mark.asyncio
async def test_switch_to_known_chain(wallet):
    await switch_chain(wallet, ARBITRUM)
    assert wallet.chain_id == ARBITRUM
    assert wallet.added == []


@pytest.mark.asyncio
async def test_unknown_chain_is_added_once(wallet):
    wallet.known_chains = {1}

    await switch_chain(wallet, ARBITRUM)

    assert wallet.added == [CHAIN_CONFIGS[ARBITRUM]]
    assert wallet.chain_id == ARBITRUM
    assert wallet.switch_calls == [ARBITRUM]


@pytest.mark.asyncio
async def test_chain_without_parameters_cannot_be_added(wallet):
    wallet.known_chains = {1}

    with pytest.raises(ChainSwitchError, match="Unknown chain ID: 999"):
        await switch_chain(wallet, 999)


@pytest.mark.asyncio
async def test_user_rejection_is_chain_switch_error(wallet):
    wallet.switch_error = WalletError("User rejected the request.", code=4001)

    with pytest.raises(ChainSwitchError, match="rejected"):
        await switch_chain(wallet, ARBITRUM)
    assert wallet.added == []


@pytest.mark.asyncio
async def test_failed_add_is_chain_switch_error(wallet):
    wallet.known_chains = {1}

    async def refuse(chain_id, params):
        raise WalletError("User rejected adding the network", code=4001)

    wallet.add_chain = refuse
    with pytest.raises(ChainSwitchError, match="adding the network"):
        await switch_chain(wallet, ARBITRUM)
