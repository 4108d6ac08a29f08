import logging
from typing import Any, Dict, Optional

import socketio
from socketio import exceptions as sio_exceptions

logger = logging.getLogger(__name__)


class BeaconError(Exception):
    """Base class for transport failures."""


class BeaconConnectionError(BeaconError):
    pass


class AckTimeoutError(BeaconError):
    def __init__(self, label: str, timeout: float):
        super().__init__(f"{label} ack timeout")
        self.label = label
        self.timeout = timeout


class BeaconCallError(BeaconError):
    def __init__(self, label: str, message: str):
        super().__init__(f"{label} failed: {message}")
        self.label = label


class BeaconClient:
    """
    One Socket.IO session to the Beacon server.

    Every request is a single event emitted with an acknowledgment callback;
    `call` blocks until that ack arrives or the timeout elapses. The auth key
    is merged into each payload under `key`.
    """

    def __init__(self, config):
        self.url = config.url
        self.key = config.key
        self.timeout = config.ack_timeout
        self.reconnection_attempts = config.reconnection_attempts

        if not self.key:
            raise ValueError("A Beacon key must be provided in the configuration.")

        self.sio = socketio.Client(
            reconnection_attempts=self.reconnection_attempts,
            logger=False,
        )
        self.sio.on("connect_error", self._on_connect_error)
        self.sio.on("disconnect", self._on_disconnect)
        self._closed = False

    def _on_connect_error(self, data=None):
        logger.error(f"Connect error: {data}")

    def _on_disconnect(self, *args):
        logger.info("Disconnected from Beacon server")

    def connect(self):
        logger.info(f"Connecting to {self.url} ...")
        try:
            self.sio.connect(self.url, transports=["websocket"], wait_timeout=self.timeout)
        except sio_exceptions.ConnectionError as e:
            raise BeaconConnectionError(f"Could not connect to {self.url}: {e}") from e
        logger.info(f"Connected, socket id = {self.sio.sid}")
        return self

    def close(self):
        """Disconnect once; later calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        try:
            self.sio.disconnect()
        finally:
            logger.info("Connection closed")

    @property
    def closed(self) -> bool:
        return self._closed

    def call(self, event: str, payload: Optional[Dict[str, Any]] = None,
             label: Optional[str] = None, timeout: Optional[float] = None):
        """
        Emit an event and wait for its acknowledgment.

        Args:
            event: Server event name (e.g., 'get_status')
            payload: Event arguments, without the auth key
            label: Operation label used in logs and errors (default: event)
            timeout: Seconds to wait for the ack (default from config)

        Returns:
            The first ack argument, or None when the server acked with no arguments
        """
        label = label or event
        timeout = self.timeout if timeout is None else timeout
        body = {"key": self.key}
        body.update(payload or {})

        if self._closed:
            raise BeaconCallError(label, "session is closed")

        logger.info(f">>> Emitting {event} with payload: {self._redact(body)}")
        try:
            response = self.sio.call(event, body, timeout=timeout)
        except sio_exceptions.TimeoutError as e:
            logger.error(f"[{label}] no ack within {timeout}s")
            raise AckTimeoutError(label, timeout) from e
        except sio_exceptions.SocketIOError as e:
            logger.error(f"[{label}] call failed: {e}")
            raise BeaconCallError(label, str(e)) from e

        # Multiple ack arguments arrive as a tuple; only the first is the response
        if isinstance(response, tuple):
            response = response[0] if response else None

        if response is None:
            logger.info(f"<<< [{label}] ACK response: <no-args>")
        else:
            logger.info(f"<<< [{label}] ACK response received")
            logger.debug(f"<<< [{label}] {response}")
        return response

    @staticmethod
    def _redact(body: Dict[str, Any]) -> Dict[str, Any]:
        return {k: ("***" if k == "key" else v) for k, v in body.items()}

    # ------------------------------------------------------------------
    # Core server queries
    # ------------------------------------------------------------------

    def get_status(self):
        return self.call("get_status")

    def get_server_time(self):
        return self.call("get_server_time")

    def list_online_players(self):
        return self.call("list_online_players")

    def force_update(self):
        return self.call("force_update")

    def get_player_advancements(self, player_uuid: str = None, player_name: str = None):
        return self.call("get_player_advancements", _player(player_uuid, player_name))

    def get_player_stats(self, player_uuid: str = None, player_name: str = None):
        return self.call("get_player_stats", _player(player_uuid, player_name))

    def get_player_nbt(self, player_uuid: str = None, player_name: str = None):
        return self.call("get_player_nbt", _player(player_uuid, player_name))

    def lookup_player_identity(self, player_uuid: str = None, player_name: str = None):
        return self.call("lookup_player_identity", _player(player_uuid, player_name))

    def get_player_mtr_logs(self, page: int = 1, page_size: int = 20, label: str = None, **filters):
        """
        List MTR activity logs.

        Args:
            page: 1-based page number
            page_size: Records per page
            **filters: Any of playerUuid, playerName, singleDate, startDate, endDate
        """
        payload = _filters(filters)
        payload.update({"page": page, "pageSize": page_size})
        return self.call("get_player_mtr_logs", payload, label=label)

    def get_mtr_log_detail(self, log_id):
        return self.call("get_mtr_log_detail", {"id": log_id})

    def get_player_sessions(self, page: int = 1, page_size: int = 50, label: str = None, **filters):
        """
        List player join/leave sessions.

        Args:
            **filters: Any of playerUuid, playerName, singleDate, startDate, endDate, eventType
        """
        payload = _filters(filters)
        payload.update({"page": page, "pageSize": page_size})
        return self.call("get_player_sessions", payload, label=label)

    def list_player_identities(self, page: int = 1, page_size: int = 200, label: str = None):
        return self.call("list_player_identities", {"page": page, "pageSize": page_size}, label=label)

    # ------------------------------------------------------------------
    # MTR queries, all scoped by dimension
    # ------------------------------------------------------------------

    def beacon_ping(self, echo: str = None):
        return self.call("beacon_ping", {"echo": echo} if echo else {})

    def get_mtr_railway_snapshot(self, dimension: str = None):
        return self.call("get_mtr_railway_snapshot", _dimension(dimension))

    def get_mtr_network_overview(self, dimension: str = None):
        return self.call("get_mtr_network_overview", _dimension(dimension))

    def list_mtr_depots(self, dimension: str = None):
        return self.call("list_mtr_depots", _dimension(dimension))

    def list_mtr_fare_areas(self, dimension: str):
        return self.call("list_mtr_fare_areas", _dimension(dimension, required=True))

    def list_mtr_stations(self, dimension: str):
        return self.call("list_mtr_stations", _dimension(dimension, required=True))

    def list_mtr_nodes_paginated(self, dimension: str, cursor: str = None, limit: int = None, label: str = None):
        payload = _dimension(dimension, required=True)
        if cursor is not None:
            payload["cursor"] = cursor
        if limit is not None and limit > 0:
            payload["limit"] = limit
        return self.call("list_mtr_nodes_paginated", payload, label=label)

    def get_mtr_route_detail(self, dimension: str, route_id: int):
        payload = _dimension(dimension, required=True)
        payload["routeId"] = route_id
        return self.call("get_mtr_route_detail", payload, label=f"get_mtr_route_detail({route_id})")

    def get_mtr_route_trains(self, dimension: str, route_id: int):
        payload = _dimension(dimension, required=True)
        payload["routeId"] = route_id
        return self.call("get_mtr_route_trains", payload, label=f"get_mtr_route_trains({route_id})")

    def get_mtr_station_timetable(self, dimension: str, station_id: int, platform_id: int = None):
        payload = _dimension(dimension, required=True)
        payload["stationId"] = station_id
        if platform_id is not None:
            payload["platformId"] = platform_id
        return self.call("get_mtr_station_timetable", payload,
                         label=f"get_mtr_station_timetable({station_id})")

    def get_mtr_depot_trains(self, dimension: str, depot_id: int):
        payload = _dimension(dimension, required=True)
        payload["depotId"] = depot_id
        return self.call("get_mtr_depot_trains", payload, label=f"get_mtr_depot_trains({depot_id})")


def _player(player_uuid, player_name) -> Dict[str, Any]:
    payload = {}
    if player_uuid:
        payload["playerUuid"] = player_uuid
    if player_name:
        payload["playerName"] = player_name
    return payload


def _filters(filters: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in filters.items() if v is not None}


def _dimension(dimension: Optional[str], required: bool = False) -> Dict[str, Any]:
    if dimension is None or not dimension.strip():
        if required:
            raise ValueError("dimension is required")
        return {}
    return {"dimension": dimension}
