"""
Unit Tests for Analysis Configuration
"""

import logging

import pytest
from datetime import datetime

from config import (
    AnalysisConfig, SectorConfig, DEFAULT_SECTORS,
    load_config, config_from_env, configure_logging
)


ENV_VARS = [
    'ENERGY_START_DATE', 'ENERGY_END_DATE', 'ENERGY_PERIOD',
    'ENERGY_RISK_FREE_RATE', 'ENERGY_CAGR_YEARS', 'ENERGY_START_VALUE', 'ENERGY_LOG_LEVEL',
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    """Test suite for default parameters"""

    def test_analysis_defaults(self):
        """Defaults of the original analysis"""
        config = AnalysisConfig()

        assert config.start_date == datetime(2015, 1, 1)
        assert config.end_date == datetime(2024, 12, 31)
        assert config.period == 'quarter'
        assert config.periods_per_year == 4
        assert config.risk_free_rate == 0.00125
        assert config.cagr_years == 10
        assert config.start_value == 100.0

    def test_default_sectors(self):
        """Fifteen equities and three ETFs"""
        assert [s.name for s in DEFAULT_SECTORS] == ['Nuclear', 'Fossil Fuel', 'Renewables']
        assert sum(len(s.tickers) for s in DEFAULT_SECTORS) == 15
        assert len(AnalysisConfig().all_tickers) == 18

    def test_sector_all_tickers(self):
        """Constituents followed by the ETF"""
        sector = SectorConfig('Test', ('A', 'B'), 'ETF')
        assert sector.all_tickers == ['A', 'B', 'ETF']

    def test_sector_tickers_deduplicated(self):
        """Repeats and an ETF listed as an equity appear once"""
        sector = SectorConfig('Test', ('A', 'ETF', 'A'), 'ETF')
        assert sector.constituents == ['A', 'ETF']
        assert sector.all_tickers == ['A', 'ETF']

    def test_get_sector(self):
        """Lookup by name"""
        config = AnalysisConfig()
        assert config.get_sector('Nuclear').etf == 'URA'
        with pytest.raises(KeyError):
            config.get_sector('Hydro')


class TestEnvironmentOverrides:
    """Test suite for ENERGY_* variables"""

    def test_no_overrides(self):
        """Unset environment keeps defaults"""
        assert config_from_env() == AnalysisConfig()

    def test_overrides(self, monkeypatch):
        """Values parsed from strings"""
        monkeypatch.setenv('ENERGY_START_DATE', '2018-01-01')
        monkeypatch.setenv('ENERGY_RISK_FREE_RATE', '0.01')
        monkeypatch.setenv('ENERGY_START_VALUE', '1000')
        config = config_from_env()

        assert config.start_date == datetime(2018, 1, 1)
        assert config.risk_free_rate == 0.01
        assert config.start_value == 1000.0

    def test_derived_cagr_horizon(self, monkeypatch):
        """'auto' selects the date-derived horizon"""
        monkeypatch.setenv('ENERGY_CAGR_YEARS', 'auto')
        assert config_from_env().cagr_years is None

    def test_period_sets_periods_per_year(self, monkeypatch):
        """Monthly resampling annualizes with 12"""
        monkeypatch.setenv('ENERGY_PERIOD', 'month')
        config = config_from_env()
        assert config.period == 'month'
        assert config.periods_per_year == 12

    def test_invalid_date_order(self, monkeypatch):
        """Start after end is rejected"""
        monkeypatch.setenv('ENERGY_START_DATE', '2030-01-01')
        with pytest.raises(ValueError):
            config_from_env()


class TestLoadConfig:
    """Test suite for YAML configuration files"""

    def test_defaults_without_file(self):
        """No file means defaults"""
        assert load_config() == AnalysisConfig()

    def test_yaml_file(self, tmp_path):
        """Parameters and sectors from YAML"""
        path = tmp_path / 'analysis.yaml'
        path.write_text(
            "start_date: 2016-01-01\n"
            "cagr_years: none\n"
            "sectors:\n"
            "  - name: Hydro\n"
            "    tickers: [brk.a, d]\n"
            "    etf: pho\n"
            "    color: '#2563eb'\n"
        )
        config = load_config(path)

        assert config.start_date == datetime(2016, 1, 1)
        assert config.cagr_years is None
        assert len(config.sectors) == 1
        assert config.sectors[0].tickers == ('BRK.A', 'D')
        assert config.sectors[0].etf == 'PHO'

    def test_env_wins_over_yaml(self, tmp_path, monkeypatch):
        """Environment is applied after the file"""
        path = tmp_path / 'analysis.yaml'
        path.write_text("risk_free_rate: 0.002\n")
        monkeypatch.setenv('ENERGY_RISK_FREE_RATE', '0.003')

        assert load_config(path).risk_free_rate == 0.003

    def test_unknown_key(self, tmp_path):
        """Typos are reported"""
        path = tmp_path / 'analysis.yaml'
        path.write_text("risk_free: 0.002\n")
        with pytest.raises(ValueError):
            load_config(path)

    def test_sector_missing_etf(self, tmp_path):
        """Incomplete sector definitions are rejected"""
        path = tmp_path / 'analysis.yaml'
        path.write_text("sectors:\n  - name: Hydro\n    tickers: [D]\n")
        with pytest.raises(ValueError):
            load_config(path)

    def test_sector_duplicate_tickers(self, tmp_path):
        """Repeated equities collapse in order"""
        path = tmp_path / 'analysis.yaml'
        path.write_text("sectors:\n  - name: Hydro\n    tickers: [d, BEP, D]\n    etf: pho\n")
        assert load_config(path).sectors[0].tickers == ('D', 'BEP')

    def test_sector_etf_among_tickers(self, tmp_path):
        """ETF repeated as an equity is rejected"""
        path = tmp_path / 'analysis.yaml'
        path.write_text("sectors:\n  - name: Hydro\n    tickers: [D, PHO]\n    etf: pho\n")
        with pytest.raises(ValueError):
            load_config(path)

    def test_empty_file(self, tmp_path):
        """Empty YAML keeps defaults"""
        path = tmp_path / 'analysis.yaml'
        path.write_text("")
        assert load_config(path) == AnalysisConfig()


class TestConfigureLogging:
    """Test suite for the root log level"""

    @pytest.fixture(autouse=True)
    def restore_root_level(self):
        root = logging.getLogger()
        level = root.level
        yield
        root.setLevel(level)

    def test_env_level_after_data_fetcher_import(self, monkeypatch):
        """ENERGY_LOG_LEVEL applies although data_fetcher already configured logging"""
        import data_fetcher  # noqa: F401

        monkeypatch.setenv('ENERGY_LOG_LEVEL', 'DEBUG')
        configure_logging()
        assert logging.getLogger().level == logging.DEBUG

    def test_explicit_level(self):
        """Argument wins over the environment"""
        configure_logging('warning')
        assert logging.getLogger().level == logging.WARNING


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
