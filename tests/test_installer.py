import base64
import json

import pytest
import yaml

from sctool.core.broker import GCPBroker
from sctool.core.errors import ConfigurationError, SctoolError, StageWaitError
from sctool.core.installer import ServiceCatalogInstaller
from sctool.core.models import BrokerConfig, InstallConfig
from sctool.core.pipeline import PipelineResult


class Recorder:
    """Stands in for run_pipeline: records stages, fakes cfssljson output."""

    def __init__(self, outputs=None, fail_when=None):
        self.calls = []
        self.outputs = outputs or {}
        self.fail_when = fail_when

    def __call__(self, stages):
        stages = list(stages)
        self.calls.append(stages)
        last = stages[-1]
        if self.fail_when and self.fail_when(stages):
            err = StageWaitError(len(stages) - 1, last.argv, 1)
            return PipelineResult(stderr=b"Unable to connect to the server", error=err)
        if last.argv[:2] == ["cfssljson", "-bare"]:
            prefix = last.argv[2]
            (last.cwd / f"{prefix}.pem").write_text(f"{prefix}-PEM")
            (last.cwd / f"{prefix}-key.pem").write_text(f"{prefix}-KEY")
        return PipelineResult(output=self.outputs.get(tuple(stages[0].argv), b""))

    def argvs(self):
        return [[s.argv for s in call] for call in self.calls]


def applied_kinds(recorder):
    kinds = []
    for call in recorder.calls:
        if call[-1].argv == ["kubectl", "apply", "-f", "-"] and call[-1].stdin:
            kinds.append([d["kind"] for d in yaml.safe_load_all(call[-1].stdin) if d])
    return kinds


@pytest.fixture
def checked():
    return []


def test_install_sequence(tmp_path, checked):
    rec = Recorder()
    cfg = InstallConfig(namespace="sc-test", work_dir=tmp_path / "work")
    work = ServiceCatalogInstaller(cfg, runner=rec, dependency_check=checked.append).install()

    assert work == tmp_path / "work"
    assert checked == [["kubectl", "cfssl", "cfssljson"]]
    argvs = rec.argvs()
    assert argvs[0] == [
        ["cfssl", "gencert", "-initca", str(work / "ca-csr.json")],
        ["cfssljson", "-bare", "ca"],
    ]
    assert argvs[1][0][:2] == ["cfssl", "gencert"]
    assert "-ca=ca.pem" in argvs[1][0] and "-profile=server" in argvs[1][0]
    assert argvs[1][1] == ["cfssljson", "-bare", "apiserver"]

    csr = json.loads((work / "apiserver-csr.json").read_text())
    assert "service-catalog-api.sc-test.svc" in csr["hosts"]

    # tls secret is rendered by kubectl and piped into apply
    secret_call = [a for a in argvs if a[0][:4] == ["kubectl", "create", "secret", "tls"]]
    assert len(secret_call) == 1
    assert secret_call[0][1] == ["kubectl", "apply", "-f", "-"]
    assert f"--cert={work / 'apiserver.pem'}" in secret_call[0][0]

    assert applied_kinds(rec) == [
        ["Namespace"],
        ["ServiceAccount", "ServiceAccount", "ClusterRole", "ClusterRoleBinding",
         "ClusterRoleBinding", "ClusterRole", "ClusterRoleBinding"],
        ["Service", "Deployment"],
        ["Deployment"],
        ["APIService"],
    ]
    # secret must exist before the deployment that mounts it
    order = [a[0][:4] for a in argvs]
    assert order.index(["kubectl", "create", "secret", "tls"]) == 4
    apiservice = yaml.safe_load(rec.calls[-1][-1].stdin)
    assert apiservice["spec"]["service"] == {"namespace": "sc-test", "name": "service-catalog-api"}
    assert base64.b64decode(apiservice["spec"]["caBundle"]) == b"ca-PEM"
    assert work.exists()


def test_install_cleans_work_dir_when_configured(tmp_path):
    cfg = InstallConfig(work_dir=tmp_path / "work", cleanup_temp_dir_on_success=True)
    work = ServiceCatalogInstaller(cfg, runner=Recorder(), dependency_check=lambda names: None).install()
    assert not work.exists()


def test_install_stops_at_first_failure(tmp_path):
    rec = Recorder(fail_when=lambda stages: stages[-1].stdin and "kind: Namespace" in stages[-1].stdin)
    cfg = InstallConfig(work_dir=tmp_path / "work", cleanup_temp_dir_on_success=True)
    with pytest.raises(StageWaitError):
        ServiceCatalogInstaller(cfg, runner=rec, dependency_check=lambda names: None).install()
    assert len(rec.calls) == 3
    # work dir kept for troubleshooting
    assert (tmp_path / "work" / "ca.pem").exists()


def test_install_propagates_dependency_failure(tmp_path):
    def missing(names):
        raise SctoolError("cfssl commands not found in the PATH")

    rec = Recorder()
    with pytest.raises(SctoolError):
        ServiceCatalogInstaller(InstallConfig(work_dir=tmp_path), runner=rec, dependency_check=missing).install()
    assert rec.calls == []


def test_uninstall_sequence(checked):
    rec = Recorder()
    ServiceCatalogInstaller(InstallConfig(namespace="sc-x"), runner=rec, dependency_check=checked.append).uninstall()
    assert checked == [["kubectl"]]
    argvs = [call[0] for call in rec.argvs()]
    assert [a[1:3] for a in argvs] == [
        ["delete", "apiservice"],
        ["delete", "clusterrolebinding"],
        ["delete", "clusterrole"],
        ["delete", "namespace"],
    ]
    assert argvs[0][3] == "v1beta1.servicecatalog.k8s.io"
    assert argvs[-1][3] == "sc-x"
    assert all(a[-1] == "--ignore-not-found" for a in argvs)


def test_add_broker_with_gcloud_project(checked):
    rec = Recorder(outputs={("gcloud", "config", "get-value", "project"): b"my-proj\n"})
    url = GCPBroker(BrokerConfig(), runner=rec, dependency_check=checked.append).add()

    assert url == "https://servicebroker.googleapis.com/v1beta1/projects/my-proj/brokers/default"
    assert checked == [["gcloud", "kubectl"]]
    argvs = rec.argvs()
    assert argvs[0] == [["gcloud", "config", "get-value", "project"]]
    assert argvs[1] == [["gcloud", "services", "enable", "servicebroker.googleapis.com", "--project", "my-proj"]]
    token = argvs[2]
    assert len(token) == 3
    assert token[0] == ["gcloud", "auth", "print-access-token"]
    assert token[1][:4] == ["kubectl", "create", "secret", "generic"]
    assert "--from-file=token=/dev/stdin" in token[1]
    assert token[2] == ["kubectl", "apply", "-f", "-"]
    broker = yaml.safe_load(rec.calls[3][0].stdin)
    assert broker["kind"] == "ClusterServiceBroker"
    assert broker["spec"]["url"] == url
    assert broker["spec"]["authInfo"]["bearer"]["secretRef"]["name"] == "gcp-broker-token"


def test_add_broker_with_configured_project():
    rec = Recorder()
    GCPBroker(BrokerConfig(project="fixed", apis=[]), runner=rec, dependency_check=lambda names: None).add()
    assert all(call[0].argv[:3] != ["gcloud", "config", "get-value"] for call in rec.calls)
    assert len(rec.calls) == 2


def test_add_broker_without_project_fails():
    rec = Recorder(outputs={("gcloud", "config", "get-value", "project"): b"(unset)\n"})
    with pytest.raises(SctoolError, match="no GCP project"):
        GCPBroker(BrokerConfig(), runner=rec, dependency_check=lambda names: None).add()
    assert len(rec.calls) == 1


def test_remove_broker():
    rec = Recorder()
    GCPBroker(BrokerConfig(name="b1"), runner=rec, dependency_check=lambda names: None).remove()
    assert rec.argvs() == [
        [["kubectl", "delete", "clusterservicebroker", "b1", "--ignore-not-found"]],
        [["kubectl", "delete", "secret", "gcp-broker-token", "--namespace", "service-catalog", "--ignore-not-found"]],
    ]


def test_broker_url_template_with_unknown_field_fails_before_any_change():
    rec = Recorder()
    cfg = BrokerConfig(project="p1", url_template="https://x/{project}/{zone}")
    with pytest.raises(ConfigurationError, match="url_template"):
        GCPBroker(cfg, runner=rec, dependency_check=lambda names: None).add()
    assert rec.calls == []


def test_install_without_generated_ca_fails(tmp_path):
    def no_files(stages):
        return PipelineResult()

    cfg = InstallConfig(work_dir=tmp_path / "work")
    with pytest.raises(SctoolError, match="CA certificate was not generated"):
        ServiceCatalogInstaller(cfg, runner=no_files, dependency_check=lambda names: None).install()
