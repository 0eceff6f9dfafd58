import asyncio
import functools
import signal
import sys

from pollswarm.aggregation import ProgressReporter
from pollswarm.client import (
    HTTPClient,
    SessionProvider,
    SwarmClient,
    build_subscribe_path,
)
from pollswarm.decoding import get_decoder
from pollswarm.env import Env, TimeParser, load_env
from pollswarm.errors import AuthError
from pollswarm.logging import Logger, LoggingConfig
from pollswarm.logging.pollswarm_logging_models import SwarmError, SwarmInfo
from pollswarm.swarm import RetryPolicy, SwarmManager, SwarmResult


def create_client(env: Env) -> HTTPClient:
    return HTTPClient(
        env.POLLSWARM_ADDRESS,
        force_ipv4=env.POLLSWARM_FORCE_IPV4,
        connect_timeout=TimeParser().parse(env.POLLSWARM_CONNECT_TIMEOUT),
    )


def create_swarm(
    env: Env,
    http_client: HTTPClient,
    cancel: asyncio.Event | None = None,
) -> SwarmManager:
    time_parser = TimeParser()

    session = SessionProvider(
        http_client,
        env.POLLSWARM_USERNAME,
        env.POLLSWARM_PASSWORD,
        login_path=env.POLLSWARM_LOGIN_PATH,
    )

    return SwarmManager(
        session,
        functools.partial(SwarmClient, http_client),
        build_subscribe_path(
            env.POLLSWARM_AUTOUPDATE_PATH,
            compress=env.POLLSWARM_COMPRESS,
        ),
        decoder=get_decoder(env.POLLSWARM_CHUNK_FORMAT),
        retry_policy=RetryPolicy(
            max_attempts=env.POLLSWARM_CONNECT_RETRIES,
            interval=time_parser.parse(env.POLLSWARM_RETRY_INTERVAL),
        ),
        cancel=cancel,
        logs_path=env.POLLSWARM_LOGS_PATH,
    )


async def connect(env: Env) -> SwarmResult:
    """
    Opens many connections to the autoupdate service and keeps them open.

    Every connection waits for messages. For each change a progress line
    shows how many connections received an answer for that change. The
    run ends when every connection is closed or on SIGINT/SIGTERM.
    """
    loop = asyncio.get_running_loop()
    cancel = asyncio.Event()

    for signame in ("SIGINT", "SIGTERM"):
        loop.add_signal_handler(
            getattr(signal, signame),
            cancel.set,
        )

    http_client = create_client(env)
    swarm = create_swarm(env, http_client, cancel=cancel)

    reporter = ProgressReporter(logs_path=env.POLLSWARM_LOGS_PATH)
    await reporter.attach(swarm.aggregator)

    try:
        return await swarm.start(
            workers=env.POLLSWARM_CONNECTIONS,
            body=env.POLLSWARM_AUTOUPDATE_BODY,
        )

    finally:
        for signame in ("SIGINT", "SIGTERM"):
            loop.remove_signal_handler(getattr(signal, signame))

        await reporter.close()
        await http_client.close()


async def run_connect(env: Env) -> int:
    logger = Logger()

    async with logger.context(
        name="connect",
        path=env.POLLSWARM_LOGS_PATH,
    ) as ctx:
        try:
            result = await connect(env)

        except AuthError as err:
            await ctx.log(
                SwarmError(
                    message=f"login client: {err}",
                    workers=env.POLLSWARM_CONNECTIONS,
                )
            )

            return 1

        await ctx.log(
            SwarmInfo(
                message=f"Reached {len(result.counts)} changes with {env.POLLSWARM_CONNECTIONS} connections",
                workers=env.POLLSWARM_CONNECTIONS,
            )
        )

        return 0


def main():
    env = load_env(Env)

    logging_config = LoggingConfig()
    logging_config.update(
        log_level=env.POLLSWARM_LOG_LEVEL,
        log_output=env.POLLSWARM_LOG_OUTPUT,
    )

    sys.exit(asyncio.run(run_connect(env)))
