"""Tests for the Motion Blinds options flow."""

from __future__ import annotations

from homeassistant.const import CONF_HOST, CONF_MAC, CONF_NAME
from homeassistant.core import HomeAssistant
from homeassistant.data_entry_flow import FlowResultType
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.motion_blinds.const import (
    BLIND_DEVICE_TYPE,
    CONF_BLINDS,
    CONF_DEVICE_TYPE,
    CONF_KEY,
    CONF_POLL_INTERVAL,
    DOMAIN,
)

KITCHEN = {CONF_NAME: "Kitchen", CONF_DEVICE_TYPE: BLIND_DEVICE_TYPE}


def _mock_config_entry(hass: HomeAssistant, options: dict | None = None) -> MockConfigEntry:
    entry = MockConfigEntry(
        domain=DOMAIN,
        title="Test Gateway",
        data={CONF_HOST: "192.168.1.50", CONF_KEY: "12ab345c-d67e-8f"},
        options=options or {},
        unique_id="f0f0f0f0f0f0",
    )
    entry.add_to_hass(hass)
    return entry


async def _open_step(hass: HomeAssistant, entry: MockConfigEntry, step: str) -> dict:
    result = await hass.config_entries.options.async_init(entry.entry_id)
    assert result["type"] is FlowResultType.MENU
    return await hass.config_entries.options.async_configure(
        result["flow_id"], {"next_step_id": step}
    )


async def test_menu(hass: HomeAssistant) -> None:
    entry = _mock_config_entry(hass)
    result = await hass.config_entries.options.async_init(entry.entry_id)
    assert result["type"] is FlowResultType.MENU
    assert result["menu_options"] == ["settings", "blind_add", "blind_remove"]


async def test_set_poll_interval(hass: HomeAssistant) -> None:
    entry = _mock_config_entry(hass, {CONF_BLINDS: {"aabbccddeeff": KITCHEN}})
    result = await _open_step(hass, entry, "settings")
    assert result["type"] is FlowResultType.FORM

    result = await hass.config_entries.options.async_configure(
        result["flow_id"], {CONF_POLL_INTERVAL: 30}
    )

    assert result["type"] is FlowResultType.CREATE_ENTRY
    assert entry.options == {
        CONF_BLINDS: {"aabbccddeeff": KITCHEN},
        CONF_POLL_INTERVAL: 30,
    }


async def test_add_blind(hass: HomeAssistant) -> None:
    entry = _mock_config_entry(hass)
    result = await _open_step(hass, entry, "blind_add")
    assert result["step_id"] == "blind_add"

    result = await hass.config_entries.options.async_configure(
        result["flow_id"], {CONF_MAC: " AABBCCDDEEFF ", CONF_NAME: "Kitchen"}
    )

    assert result["type"] is FlowResultType.CREATE_ENTRY
    assert entry.options[CONF_BLINDS] == {"aabbccddeeff": KITCHEN}


async def test_add_another_blind(hass: HomeAssistant) -> None:
    entry = _mock_config_entry(hass)
    result = await _open_step(hass, entry, "blind_add")

    result = await hass.config_entries.options.async_configure(
        result["flow_id"],
        {CONF_MAC: "aabbccddeeff", CONF_NAME: "Kitchen", "add_another": True},
    )
    assert result["type"] is FlowResultType.FORM
    assert result["step_id"] == "blind_add"

    result = await hass.config_entries.options.async_configure(
        result["flow_id"], {CONF_MAC: "112233445566", CONF_NAME: "Office"}
    )

    assert result["type"] is FlowResultType.CREATE_ENTRY
    assert set(entry.options[CONF_BLINDS]) == {"aabbccddeeff", "112233445566"}


async def test_add_blind_blank_mac(hass: HomeAssistant) -> None:
    entry = _mock_config_entry(hass)
    result = await _open_step(hass, entry, "blind_add")

    result = await hass.config_entries.options.async_configure(
        result["flow_id"], {CONF_MAC: "   ", CONF_NAME: "Kitchen"}
    )

    assert result["type"] is FlowResultType.FORM
    assert result["errors"] == {CONF_MAC: "invalid_mac"}


async def test_remove_blind(hass: HomeAssistant) -> None:
    entry = _mock_config_entry(
        hass,
        {CONF_BLINDS: {"aabbccddeeff": KITCHEN, "112233445566": KITCHEN}},
    )
    result = await _open_step(hass, entry, "blind_remove")
    assert result["type"] is FlowResultType.FORM

    result = await hass.config_entries.options.async_configure(
        result["flow_id"], {CONF_MAC: "aabbccddeeff"}
    )

    assert result["type"] is FlowResultType.CREATE_ENTRY
    assert entry.options[CONF_BLINDS] == {"112233445566": KITCHEN}


async def test_remove_blind_none_configured(hass: HomeAssistant) -> None:
    entry = _mock_config_entry(hass)
    result = await _open_step(hass, entry, "blind_remove")
    assert result["type"] is FlowResultType.ABORT
    assert result["reason"] == "no_blinds"
