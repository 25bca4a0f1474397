from dataclasses import dataclass


@dataclass
class StreamConfig:
    # Number of buffered observations that triggers a merge into the summary
    batch_size: int = 500
