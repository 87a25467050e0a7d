"""Tests for epitreat.parameters — parameter sets, efficacy regime, labels."""

import dataclasses

import numpy as np
import pytest

from epitreat.exceptions import DomainError
from epitreat.experiments import inclusive_range
from epitreat.parameters import (
    COVERAGE_THRESHOLD,
    HIGH_COVERAGE_LABEL,
    LOW_COVERAGE_LABEL,
    InitialConditions,
    TreatmentParameters,
    default_parameters,
    is_low_coverage,
    medicine_type,
    no_intervention_parameters,
    simplified_initial_conditions,
)


# ── Defaults ──────────────────────────────────────────────────────────

class TestDefaults:
    def test_default_values(self):
        p = default_parameters()
        assert p.theta == pytest.approx(1 / 7)
        assert p.theta_a == pytest.approx(1 / 10)
        assert p.alpha_low_cov == 2.0
        assert p.alpha_high_cov == 4.0
        assert p.t_start == 14
        assert p.cov_active == 0.6

    def test_beta_ca_mirrors_beta_ac(self):
        p = TreatmentParameters(beta_ac=0.37)
        assert p.beta_ca == 0.37

    def test_no_intervention(self):
        p = no_intervention_parameters()
        assert p.cov_active == 0.0
        assert p.medicine_type == LOW_COVERAGE_LABEL

    def test_pulse_end(self):
        assert TreatmentParameters(t_start=3).t_end == 4.0

    def test_to_dict(self):
        d = default_parameters().to_dict()
        assert d["alpha"] == 2.0
        assert d["beta_ca"] == d["beta_ac"]
        assert d["medicine_type"] == HIGH_COVERAGE_LABEL


# ── Efficacy regime / label ───────────────────────────────────────────

class TestThreshold:
    def test_low_coverage_uses_high_efficacy(self):
        p = TreatmentParameters(cov_active=0.3)
        assert p.alpha == p.alpha_high_cov
        assert p.medicine_type == LOW_COVERAGE_LABEL

    def test_high_coverage_uses_low_efficacy(self):
        p = TreatmentParameters(cov_active=0.9)
        assert p.alpha == p.alpha_low_cov
        assert p.medicine_type == HIGH_COVERAGE_LABEL

    def test_exactly_at_threshold(self):
        p = TreatmentParameters(cov_active=0.5)
        assert COVERAGE_THRESHOLD == 0.5
        assert not is_low_coverage(0.5)
        assert p.alpha == p.alpha_low_cov
        assert p.medicine_type == HIGH_COVERAGE_LABEL
        assert medicine_type(0.5) == HIGH_COVERAGE_LABEL

    def test_alpha_and_label_never_disagree(self):
        for cov in inclusive_range(0.0, 1.0, 0.05):
            p = TreatmentParameters(cov_active=cov)
            expensive = p.medicine_type == LOW_COVERAGE_LABEL
            assert (p.alpha == p.alpha_high_cov) == expensive

    def test_alpha_fixed_at_construction(self):
        p = TreatmentParameters(cov_active=0.2)
        q = p.with_strategy(14, 0.8)
        assert p.alpha == 4.0
        assert q.alpha == 2.0


# ── Immutability ──────────────────────────────────────────────────────

class TestImmutability:
    def test_frozen(self):
        p = default_parameters()
        with pytest.raises(dataclasses.FrozenInstanceError):
            p.cov_active = 0.1

    def test_with_strategy_copies(self):
        base = default_parameters()
        p = base.with_strategy(30, 0.2)
        assert p is not base
        assert (p.t_start, p.cov_active) == (30, 0.2)
        assert (base.t_start, base.cov_active) == (14, 0.6)
        assert p.beta_cc == base.beta_cc

    def test_integral_float_start_becomes_int(self):
        p = default_parameters().with_strategy(np.float64(7.0), 0.4)
        assert p.t_start == 7
        assert isinstance(p.t_start, int)


# ── Validation ────────────────────────────────────────────────────────

class TestValidation:
    @pytest.mark.parametrize("kwargs", [
        {"theta": 0.0},
        {"theta_a": -0.1},
        {"alpha_low_cov": 0.0},
        {"alpha_high_cov": float("nan")},
        {"beta_cc": -0.1},
        {"beta_aa": float("inf")},
        {"cov_active": 1.2},
        {"cov_active": -0.01},
        {"t_start": -1},
        {"t_start": 1.5},
    ])
    def test_rejects_invalid(self, kwargs):
        with pytest.raises(DomainError):
            TreatmentParameters(**kwargs)

    def test_domain_error_is_value_error(self):
        with pytest.raises(ValueError):
            TreatmentParameters(cov_active=2.0)

    def test_zero_betas_allowed(self):
        p = TreatmentParameters(beta_cc=0.0, beta_ac=0.0, beta_aa=0.0)
        assert p.beta_ca == 0.0


# ── Initial conditions ────────────────────────────────────────────────

class TestInitialConditions:
    def test_default_totals(self):
        ic = InitialConditions()
        assert ic.children_total == 101
        assert ic.adults_total == 20
        np.testing.assert_array_equal(ic.as_array(), [100, 0, 0, 1, 0, 20, 0, 0])

    def test_simplified_variant(self):
        ic = simplified_initial_conditions()
        assert ic.children_total == 100
        assert ic.Iu_c == 1

    def test_from_array(self):
        ic = InitialConditions.from_array([50, 1, 0, 2, 0, 10, 0, 1])
        assert ic.E_c == 1
        assert ic.I_a == 1

    def test_from_array_wrong_shape(self):
        with pytest.raises(DomainError):
            InitialConditions.from_array([1, 2, 3])

    def test_zero_adults_rejected(self):
        with pytest.raises(DomainError):
            InitialConditions(S_a=0.0).validate()

    def test_zero_children_rejected(self):
        with pytest.raises(DomainError):
            InitialConditions(S_c=0.0, Iu_c=0.0).validate()

    def test_negative_compartment_rejected(self):
        with pytest.raises(DomainError):
            InitialConditions(E_c=-1.0).validate()
