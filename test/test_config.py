"""Tests for ClusterConfig and ProbeConfig validation."""

import logging

import pytest

from clustermap.core.config import ClusterConfig, ProbeConfig
from clustermap.core.exceptions import ConfigurationError


class TestClusterConfig:
    def test_defaults(self):
        config = ClusterConfig(cluster_name="c1", cluster_size=2)
        assert config.instance_name_prefix == "in"
        assert config.num_nodes == 1
        assert config.base_port == 10000
        assert config.props_file_name == "cluster.props"
        assert config.ant_props_file_name == "ant/cluster.properties"
        assert config.probe == ProbeConfig()

    def test_strings_are_trimmed(self):
        config = ClusterConfig(
            cluster_name="  c1 ",
            cluster_size=1,
            instance_name_prefix=" node ",
            node_selection_label=" GFCluster\t",
        )
        assert config.cluster_name == "c1"
        assert config.instance_name_prefix == "node"
        assert config.node_selection_label == "GFCluster"

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"cluster_name": "  "}, "Please set the Cluster Name"),
            ({"instance_name_prefix": ""}, "Please set the Instance Name Prefix"),
            ({"cluster_size": 0}, "Invalid Cluster Size: 0"),
            ({"num_nodes": 0}, "Invalid number of nodes: 0"),
            ({"base_port": 70000}, "Invalid base port: 70000"),
        ],
    )
    def test_invalid_values(self, kwargs, message):
        values = {"cluster_name": "c1", "cluster_size": 2, **kwargs}
        with pytest.raises(ConfigurationError, match=message):
            ClusterConfig(**values)

    def test_large_values_only_warn(self, caplog):
        with caplog.at_level(logging.WARNING, logger="clustermap"):
            config = ClusterConfig(cluster_name="c" * 120, cluster_size=150)
        assert config.cluster_size == 150
        messages = [r.getMessage() for r in caplog.records]
        assert any("Cluster Name is very long" in m for m in messages)
        assert "Cluster Size 150 is unusually large" in messages

    def test_from_strings(self):
        config = ClusterConfig.from_strings(
            "c1", " 3 ", num_nodes="2", node_selection_label="GFCluster"
        )
        assert (config.cluster_size, config.num_nodes) == (3, 2)
        assert config.node_selection_label == "GFCluster"

    def test_from_strings_rejects_non_integers(self):
        with pytest.raises(ConfigurationError, match="Invalid Cluster Size: 'three'"):
            ClusterConfig.from_strings("c1", "three")

    def test_configuration_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            ClusterConfig(cluster_name="", cluster_size=1)


class TestProbeConfig:
    def test_defaults(self):
        assert ProbeConfig().max_attempts == 1000
        assert ProbeConfig().probe_timeout_s == 30.0

    @pytest.mark.parametrize(
        "kwargs", [{"max_attempts": 0}, {"probe_timeout_s": 0}, {"probe_timeout_s": -1}]
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ConfigurationError):
            ProbeConfig(**kwargs)
