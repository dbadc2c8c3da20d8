"""Config flow to configure the Motion Blinds component."""

from __future__ import annotations

import logging

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.const import CONF_HOST, CONF_NAME
from homeassistant.core import callback

from .const import BLIND_DEVICE_TYPE, CONF_KEY, DEFAULT_GATEWAY_NAME, DOMAIN
from .exceptions import (
    MotionAuthenticationError,
    MotionCommandError,
    MotionConnectionError,
    MotionRequestTimeoutError,
)
from .gateway import MotionGateway
from .options_flow import MotionBlindsOptionsFlowHandler

_LOGGER = logging.getLogger(__name__)

GATEWAY_SETTINGS = {
    vol.Required(CONF_HOST): str,
    vol.Required(CONF_KEY): vol.All(str, vol.Length(min=16, max=16)),
    vol.Optional(CONF_NAME, default=DEFAULT_GATEWAY_NAME): str,
}


class MotionBlindsFlowHandler(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a Motion Blinds config flow."""

    VERSION = 1
    CONNECTION_CLASS = config_entries.CONN_CLASS_LOCAL_PUSH

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> MotionBlindsOptionsFlowHandler:
        """Wire options flow for this entry."""
        return MotionBlindsOptionsFlowHandler()

    async def async_step_user(
        self, user_input: dict[str, str] | None = None
    ) -> config_entries.ConfigFlowResult:
        """Handle a flow initialized by the user to configure a gateway."""
        errors: dict[str, str] = {}

        if user_input is not None:
            host = user_input[CONF_HOST]
            key = user_input[CONF_KEY]

            gateway = MotionGateway(host=host, key=key)
            try:
                await gateway.connect()
                info = await gateway.get_device_list()

                # Enumeration is unauthenticated; a status query is not.
                blind = next(
                    (d for d in info.devices if d.device_type == BLIND_DEVICE_TYPE),
                    None,
                )
                if blind is not None:
                    await gateway.get_status(blind.mac, blind.device_type)

                await self.async_set_unique_id(info.mac)
                self._abort_if_unique_id_configured()
                return self.async_create_entry(
                    title=user_input[CONF_NAME],
                    data={
                        CONF_HOST: host,
                        CONF_KEY: key,
                        "mac": info.mac,
                    },
                )
            except (MotionConnectionError, MotionRequestTimeoutError):
                errors["base"] = "connect_error"
            except (MotionAuthenticationError, MotionCommandError):
                errors["base"] = "auth_error"
            finally:
                await gateway.close()

        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(GATEWAY_SETTINGS),
            errors=errors,
        )
