"""oslo.config options for the userspace CNI store and engines.

The container-side agent reads its settings through these options, and any
oslo based host agent can register them on its own ``CONF`` object to share
the same handoff directories with the CNI plugin.
"""

from __future__ import annotations

from pathlib import Path

from oslo_config import cfg

from usrsp_store.remote import ClaimOrder
from usrsp_store.store import DEFAULT_BASE_DIR, DEFAULT_SHARED_DIR, StoreSettings

from .engines.ovs import DEFAULT_SOCKET_DIR
from .factory import EngineSettings

store_opts = [
    cfg.StrOpt('base_dir',
               default=str(DEFAULT_BASE_DIR),
               help='Root of the per-container directories holding staged '
                    'remote configuration.'),
    cfg.StrOpt('shared_dir',
               default=str(DEFAULT_SHARED_DIR),
               help='Directory holding saved interface state.'),
    cfg.StrOpt('claim_order',
               default=ClaimOrder.LISTING.value,
               choices=[order.value for order in ClaimOrder],
               help='Order in which pending remote configurations are '
                    'claimed: filesystem listing order or oldest first.'),
    cfg.BoolOpt('scope_by_container',
                default=True,
                help='Include the truncated container id in interface state '
                     'file names.'),
]

engine_opts = [
    cfg.StrOpt('vpp_command',
               help='Helper executable that provisions VPP interfaces.'),
    cfg.StrOpt('ovs_command',
               help='Helper executable that provisions OVS-DPDK ports.'),
    cfg.StrOpt('ovs_socket_dir',
               default=str(DEFAULT_SOCKET_DIR),
               help='Directory under which vhost-user sockets are created.'),
    cfg.FloatOpt('command_timeout',
                 default=30.0,
                 min=0.0,
                 help='Seconds to wait for a provisioning helper.'),
]

agent_opts = [
    cfg.FloatOpt('poll_interval',
                 default=2.0,
                 min=0.0,
                 help='Seconds between scans for pending remote configuration.'),
]


def register_opts(conf: cfg.ConfigOpts) -> None:
    """Register all options on ``conf`` under their groups."""

    conf.register_opts(store_opts, group='store')
    conf.register_opts(engine_opts, group='engines')
    conf.register_opts(agent_opts, group='agent')


def store_settings(conf: cfg.ConfigOpts) -> StoreSettings:
    """Build :class:`StoreSettings` from registered and parsed options."""

    return StoreSettings(
        base_dir=Path(conf.store.base_dir),
        shared_dir=Path(conf.store.shared_dir),
        claim_order=ClaimOrder(conf.store.claim_order),
        scope_by_container=conf.store.scope_by_container,
    )


def list_opts():
    """Entry point for ``oslo-config-generator``."""

    return [
        ('store', store_opts),
        ('engines', engine_opts),
        ('agent', agent_opts),
    ]


def engine_settings(conf: cfg.ConfigOpts) -> EngineSettings:
    return EngineSettings(
        vpp_command=conf.engines.vpp_command,
        ovs_command=conf.engines.ovs_command,
        ovs_socket_dir=Path(conf.engines.ovs_socket_dir),
        command_timeout=conf.engines.command_timeout,
    )
