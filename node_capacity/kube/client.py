from __future__ import annotations
from typing import Dict, Any, Iterable, Tuple, Optional
from kubernetes import config as k8s_config, client as k8s_client
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
import urllib3, time, json
from ..config import ClusterConfig
from ..errors import ClientConfigError, ResourceListError
from ..util import logging as log
urllib3.disable_warnings()

TRANSIENT_STATUSES = (429, 500, 502, 503, 504)
# (api_version, plural) for every collection the report reads.
NODES = ('v1', 'nodes')
PODS = ('v1', 'pods')
NODE_METRICS = ('metrics.k8s.io/v1beta1', 'nodes')
POD_METRICS = ('metrics.k8s.io/v1beta1', 'pods')

def load_kubeconfig(kubeconfig: str | None = None, context: str | None = None):
    """Load a kubeconfig file, falling back to in-cluster config when no file is usable."""
    try:
        k8s_config.load_kube_config(config_file=kubeconfig, context=context)
    except ConfigException:
        if kubeconfig:
            raise
        log.debug('no usable kubeconfig, trying in-cluster config')
        k8s_config.load_incluster_config()

def configure_from_credentials(credentials) -> k8s_client.Configuration:
    cfg = k8s_client.Configuration()
    cfg.host = credentials.host
    if credentials.token:
        cfg.api_key = {"authorization": credentials.token}
        cfg.api_key_prefix = {"authorization": "Bearer"}
        log.debug('using bearer token', host=credentials.host)
    elif credentials.username and credentials.password:
        import base64
        basic_auth = base64.b64encode(f"{credentials.username}:{credentials.password}".encode()).decode()
        cfg.api_key = {"authorization": f"Basic {basic_auth}"}
    if credentials.cert_file: cfg.cert_file = credentials.cert_file
    if credentials.key_file: cfg.key_file = credentials.key_file
    if credentials.ca_file: cfg.ssl_ca_cert = credentials.ca_file
    cfg.verify_ssl = credentials.verify_ssl
    if not credentials.verify_ssl: log.warn('ssl_verification_disabled', host=credentials.host)
    return cfg

def make_api_client(target: ClusterConfig) -> k8s_client.ApiClient:
    try:
        if target.credentials:
            return k8s_client.ApiClient(configuration=configure_from_credentials(target.credentials))
        load_kubeconfig(target.kubeconfig, target.context)
        return k8s_client.ApiClient()
    except (ConfigException, OSError) as e:
        raise ClientConfigError(f'Error connecting to Kubernetes: {e}', cause=e) from e

def _split_api_version(api_version: str) -> Tuple[str | None, str]:
    if '/' in api_version:
        group, version = api_version.split('/', 1)
        return group, version
    return None, api_version

def list_resources(api_client: k8s_client.ApiClient, api_version: str, plural: str,
                   max_retries: int = 4, backoff_base: float = 0.5,
                   request_timeout: Optional[float] = None) -> Iterable[Dict[str, Any]]:
    """Yield every item of a cluster-wide collection, following ``continue`` tokens.

    Transient failures are retried with exponential backoff; anything else
    (including 403/404, e.g. the metrics API is not installed) raises
    ResourceListError.
    """
    group, version = _split_api_version(api_version)
    base = f"/api/{version}/{plural}" if group is None else f"/apis/{group}/{version}/{plural}"
    cont = None
    while True:
        query = f"?continue={cont}" if cont else ''
        url = base + query
        attempt = 0
        while True:
            try:
                resp = api_client.call_api(url, 'GET', response_type='object', _preload_content=False,
                                           auth_settings=['BearerToken'], _request_timeout=request_timeout)
                payload = json.loads(resp[0].data)
                break
            except ApiException as e:
                status = getattr(e, 'status', None)
                if status in TRANSIENT_STATUSES and attempt < max_retries:
                    sleep_for = backoff_base * (2 ** attempt)
                    log.warn('transient error, retrying', api_version=api_version, plural=plural, status=status, attempt=attempt+1, sleep=sleep_for)
                    time.sleep(sleep_for); attempt += 1; continue
                if status in (403, 404):
                    log.warn('collection not accessible', api_version=api_version, plural=plural, status=status)
                else:
                    log.error('failed listing resources', api_version=api_version, plural=plural, status=status, reason=str(e))
                raise ResourceListError(api_version, plural, status, getattr(e, 'reason', None) or str(e)) from e
            except (urllib3.exceptions.HTTPError, OSError, ValueError) as e:
                if attempt < max_retries:
                    sleep_for = backoff_base * (2 ** attempt)
                    log.warn('generic error, retrying', api_version=api_version, plural=plural, attempt=attempt+1, sleep=sleep_for, error=str(e))
                    time.sleep(sleep_for); attempt += 1; continue
                log.error('unhandled error listing resources', api_version=api_version, plural=plural, error=str(e))
                raise ResourceListError(api_version, plural, None, str(e)) from e
        for item in payload.get('items', []):
            yield item
        cont = payload.get('metadata', {}).get('continue')
        if not cont:
            break
