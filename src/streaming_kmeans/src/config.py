import os
from dataclasses import asdict, dataclass

from pyaml_env import parse_config


class StreamingKMeansConfig:
    @dataclass
    class App:
        server_port: int
        log_level: str = "INFO"

        def __post_init__(self):
            # values resolved through !ENV arrive as strings
            self.server_port = int(self.server_port)
            self.log_level = str(self.log_level).upper()

    @dataclass
    class KMeans:
        k: int
        d: int
        alpha: float = 1.0
        max_iterations: int = 1
        initialization_mode: str = "gaussian"
        partitions: int = 1

        def to_dict(self) -> dict:
            return asdict(self)

    @dataclass
    class Stream:
        directory: str
        batch_interval_seconds: float = 1.0
        points_per_cluster: int = 100
        spread: float = 0.5
        drift: float = 0.05

    def __init__(self, version, app, kmeans, stream):
        self.version = version
        self.app = StreamingKMeansConfig.App(**app)
        self.kmeans = StreamingKMeansConfig.KMeans(**kmeans)
        self.stream = StreamingKMeansConfig.Stream(**stream)


current_dir = os.path.dirname(os.path.abspath(__file__))
config_path = os.path.join(current_dir, '..', 'config.yaml')
config = StreamingKMeansConfig(**parse_config(path=config_path))
