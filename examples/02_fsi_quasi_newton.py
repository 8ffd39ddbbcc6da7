# ---
# jupyter:
#   jupytext:
#     text_representation:
#       extension: .py
#       format_name: percent
#       format_version: '1.3'
#   kernelspec:
#     display_name: Python 3
#     language: python
#     name: python3
# ---

# %% [markdown]
# # 02 — Strongly Coupled Fluid-Solid Interaction
#
# An elastic wall closes a compressible cavity.  Moving the wall
# outwards raises the cavity pressure, $p = p_0 + k\,u_n$, which pushes
# the wall back.  With $\kappa = kL/E = 3$ the fixed-point iteration is
# unstable; the comparison below runs fixed, Aitken and Quasi-Newton
# relaxation over a few time steps.
#
# **Physics**: `solidcoupling.solid.ElasticBar`,
# `solidcoupling.coupling.LinearPressurePartner`

# %%
import logging

import numpy as np

from solidcoupling import CouplingSettings
from solidcoupling.coupling import LinearPressurePartner, MechanicalCouplingInterface
from solidcoupling.solid import ElasticBar
from solidcoupling.time import Stepper
from solidcoupling.zones import FaceZone

logging.basicConfig(level=logging.WARNING, format="%(name)s: %(message)s")

# %% [markdown]
# ## 1. Model factory

# %%
E, L, k, p0 = 1e9, 1.0, 3e9, 1e6


def build(relaxation: dict) -> MechanicalCouplingInterface:
    zone = FaceZone.uniform("wall", n_faces=6, area=1.0 / 6, normal=(0.0, 1.0, 0.0))
    bar = ElasticBar(zone, length=L, youngs_modulus=E, n_cells=10, stiffening=20.0)
    cavity = LinearPressurePartner(zone.normals, reference_pressure=p0, stiffness=k)
    settings = CouplingSettings.from_dict({"nOuterCorr": 100, **relaxation})
    return MechanicalCouplingInterface(bar, cavity, settings=settings)


# %% [markdown]
# ## 2. Compare relaxation methods

# %%
cases = {
    "fixed": {"relaxationMethod": "fixed", "relaxationFactor": 0.2},
    "Aitken": {"relaxationMethod": "Aitken", "relaxationFactor": 0.2},
    "QuasiNewton": {
        "relaxationMethod": "QuasiNewton",
        "relaxationFactor": 0.2,
        "QuasiNewtonRestartFrequency": 5,
        "QuasiNewtonMaxHistory": 10,
    },
}

for name, relaxation in cases.items():
    interface = build(relaxation)
    iterations = []
    for step in Stepper(t_end=3.0, dt=1.0):
        interface.begin_time_step(step)
        interface.solve_time_step()
        iterations.append(interface.iteration)
    interface.end()
    u_n = interface.fields["displacement"].value[:, 1].mean()
    print(f"{name:>12}: iterations per step {iterations}, u_n = {u_n:.6e} m")

# %% [markdown]
# The linear estimate without strain stiffening is
# $u_n = -p_0 L / (E (1 + \kappa))$.

# %%
print(f"Linear estimate: {-p0 * L / (E * (1 + k * L / E)):.6e} m")
print(f"Net force check: {np.round(interface.forces[-1], 1)} N")
