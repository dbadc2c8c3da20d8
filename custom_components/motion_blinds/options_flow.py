"""Options flow for Motion Blinds: polling interval and a fixed blind list."""

from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.const import CONF_MAC, CONF_NAME

from .const import (
    BLIND_DEVICE_TYPE,
    CONF_BLINDS,
    CONF_DEVICE_TYPE,
    CONF_POLL_INTERVAL,
    DEFAULT_POLL_INTERVAL,
    MIN_POLL_INTERVAL,
)

_LOGGER = logging.getLogger(__name__)


class MotionBlindsOptionsFlowHandler(config_entries.OptionsFlow):
    """Handle options for an existing gateway entry.

    When at least one blind is listed here, only the listed blinds are set
    up and gateway auto-discovery is skipped.
    """

    def __init__(self) -> None:
        self._blinds: dict[str, dict[str, str]] = {}

    def _options(self) -> dict[str, Any]:
        options = dict(self.config_entry.options)
        options[CONF_BLINDS] = self._blinds
        return options

    async def async_step_init(self, user_input=None):
        """Entry point."""
        self._blinds = dict(self.config_entry.options.get(CONF_BLINDS, {}))
        return self.async_show_menu(
            step_id="init",
            menu_options=["settings", "blind_add", "blind_remove"],
        )

    async def async_step_settings(self, user_input=None):
        """Polling interval."""
        if user_input is not None:
            options = self._options()
            options[CONF_POLL_INTERVAL] = user_input[CONF_POLL_INTERVAL]
            return self.async_create_entry(title="", data=options)

        current = self.config_entry.options.get(
            CONF_POLL_INTERVAL, DEFAULT_POLL_INTERVAL
        )
        return self.async_show_form(
            step_id="settings",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_POLL_INTERVAL, default=current): vol.All(
                        vol.Coerce(int), vol.Range(min=MIN_POLL_INTERVAL)
                    ),
                }
            ),
        )

    async def async_step_blind_add(self, user_input=None):
        """Add a blind by mac."""
        errors: dict[str, str] = {}

        if user_input is not None:
            mac = user_input[CONF_MAC].strip().lower()
            if not mac:
                errors[CONF_MAC] = "invalid_mac"
            else:
                _LOGGER.debug("Adding configured blind %s", mac)
                self._blinds[mac] = {
                    CONF_NAME: user_input[CONF_NAME].strip() or mac,
                    CONF_DEVICE_TYPE: user_input[CONF_DEVICE_TYPE],
                }
                if user_input.get("add_another"):
                    return await self.async_step_blind_add()
                return self.async_create_entry(title="", data=self._options())

        schema = vol.Schema(
            {
                vol.Required(CONF_MAC): str,
                vol.Required(CONF_NAME): str,
                vol.Optional(CONF_DEVICE_TYPE, default=BLIND_DEVICE_TYPE): str,
                vol.Optional("add_another", default=False): bool,
            }
        )
        return self.async_show_form(
            step_id="blind_add", data_schema=schema, errors=errors
        )

    async def async_step_blind_remove(self, user_input=None):
        """Drop a configured blind."""
        if not self._blinds:
            return self.async_abort(reason="no_blinds")

        if user_input is not None:
            _LOGGER.debug("Removing configured blind %s", user_input[CONF_MAC])
            self._blinds.pop(user_input[CONF_MAC], None)
            return self.async_create_entry(title="", data=self._options())

        return self.async_show_form(
            step_id="blind_remove",
            data_schema=vol.Schema(
                {vol.Required(CONF_MAC): vol.In(sorted(self._blinds))}
            ),
        )
