from __future__ import annotations
import os
import yaml
from dataclasses import dataclass, field
from typing import List, Optional

DEFAULT_CONFIG_FILE = 'config/config.yaml'
DEFAULT_GPU_RESOURCE = 'nvidia.com/gpu'
OUTPUT_FORMATS = ('table', 'html', 'excel')

@dataclass
class ClusterCredentials:
    host: str
    token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    ca_file: Optional[str] = None
    verify_ssl: bool = True

@dataclass
class ClusterConfig:
    name: str
    kubeconfig: Optional[str] = None
    context: Optional[str] = None
    credentials: Optional[ClusterCredentials] = None
    parallelism: int = 4
    request_timeout: float = 30.0

@dataclass
class ReportConfig:
    available: bool = False
    show_gpu: bool = True
    gpu_resource: str = DEFAULT_GPU_RESOURCE
    use_metrics: bool = True
    format: str = 'table'

@dataclass
class LoggingConfig:
    level: str = 'WARN'
    format: str = 'text'

@dataclass
class AppConfig:
    clusters: List[ClusterConfig] = field(default_factory=lambda: [ClusterConfig(name='default')])
    report: ReportConfig = field(default_factory=ReportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def get_cluster(self, name: Optional[str] = None) -> ClusterConfig:
        if name is None:
            return self.clusters[0]
        for c in self.clusters:
            if c.name == name:
                return c
        raise ValueError(f'Cluster {name} not found in config')


def _parse_credentials(creds_data: dict) -> ClusterCredentials:
    return ClusterCredentials(
        host=creds_data.get('host'),
        token=creds_data.get('token'),
        username=creds_data.get('username'),
        password=creds_data.get('password'),
        cert_file=creds_data.get('cert_file'),
        key_file=creds_data.get('key_file'),
        ca_file=creds_data.get('ca_file'),
        verify_ssl=creds_data.get('verify_ssl', True)
    )


def load_config(path: str = DEFAULT_CONFIG_FILE) -> AppConfig:
    if not os.path.exists(path):
        raise FileNotFoundError(f'Config file not found: {path}')
    with open(path, 'r', encoding='utf-8') as f:
        raw = yaml.safe_load(f) or {}
    clusters: List[ClusterConfig] = []
    for c in raw.get('clusters', []) or []:
        creds_data = c.get('credentials')
        clusters.append(ClusterConfig(
            name=c['name'],
            kubeconfig=c.get('kubeconfig'),
            context=c.get('context'),
            credentials=_parse_credentials(creds_data) if creds_data else None,
            parallelism=int(c.get('parallelism', 4)),
            request_timeout=float(c.get('request_timeout', 30.0))
        ))
    if not clusters:
        clusters = [ClusterConfig(name='default')]
    for cluster in clusters:
        if cluster.kubeconfig and cluster.credentials:
            raise ValueError(f'Cluster {cluster.name} cannot specify both kubeconfig and credentials')
        if cluster.credentials and not cluster.credentials.host:
            raise ValueError(f'Cluster {cluster.name} credentials must include host')
        if cluster.parallelism < 1:
            raise ValueError(f'Cluster {cluster.name} parallelism must be at least 1')
    report_raw = raw.get('report', {}) or {}
    report = ReportConfig(
        available=bool(report_raw.get('available', False)),
        show_gpu=bool(report_raw.get('show_gpu', True)),
        gpu_resource=report_raw.get('gpu_resource', DEFAULT_GPU_RESOURCE),
        use_metrics=bool(report_raw.get('use_metrics', True)),
        format=report_raw.get('format', 'table')
    )
    if report.format not in OUTPUT_FORMATS:
        raise ValueError(f'Unsupported report format {report.format}. Supported: {", ".join(OUTPUT_FORMATS)}')
    logging_raw = raw.get('logging', {}) or {}
    logging_cfg = LoggingConfig(
        level=logging_raw.get('level', 'WARN'),
        format=logging_raw.get('format', 'text')
    )
    return AppConfig(clusters=clusters, report=report, logging=logging_cfg)
