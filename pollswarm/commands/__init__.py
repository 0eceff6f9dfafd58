from .connect import (
    connect as connect,
    create_client as create_client,
    create_swarm as create_swarm,
    main as main,
)
