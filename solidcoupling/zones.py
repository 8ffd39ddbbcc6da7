"""Face zones: globally ordered coupling interfaces.

A face zone enumerates the boundary faces of a coupling interface in
an order that does not depend on how the mesh is partitioned.  Each
process owns a subset of the faces and knows their global indices;
partner domains always see the full, globally ordered field.

Classes
-------
FaceZone
    Face areas, unit normals and the local-to-global face map.

Functions
---------
heat_flow_rate
    Net heat flow rate ``sum(q * A)`` across a zone.
total_force
    Net force ``sum(t * A)`` exerted on a zone.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from solidcoupling.parallel import Communicator, SerialCommunicator


@dataclass
class FaceZone:
    """Coupling interface faces owned by this process.

    Args:
        name: Zone name (usually the interface patch name).
        areas: Face areas, shape ``(n_faces,)``.
        normals: Outward unit normals of the solid, shape ``(n_faces, 3)``.
        global_faces: Global index of each local face.  Defaults to the
            identity (serial run).
        n_global: Number of faces in the whole zone.  Defaults to the
            number of local faces.

    Example::

        zone = FaceZone.uniform("interface", n_faces=4, area=0.25)
        zone.to_global(np.ones(4))
    """

    name: str
    areas: np.ndarray
    normals: np.ndarray
    global_faces: np.ndarray | None = None
    n_global: int | None = None

    def __post_init__(self) -> None:
        self.areas = np.asarray(self.areas, dtype=float).reshape(-1)
        self.normals = np.asarray(self.normals, dtype=float).reshape(-1, 3)
        if len(self.normals) != len(self.areas):
            raise ValueError(
                f"Zone {self.name!r}: {len(self.areas)} areas but "
                f"{len(self.normals)} normals."
            )
        mag = np.linalg.norm(self.normals, axis=1)
        if np.any(mag < 1e-30):
            raise ValueError(f"Zone {self.name!r} has zero-length normals.")
        self.normals = self.normals / mag[:, np.newaxis]

        if self.global_faces is None:
            self.global_faces = np.arange(len(self.areas))
        self.global_faces = np.asarray(self.global_faces, dtype=int).reshape(-1)
        if len(self.global_faces) != len(self.areas):
            raise ValueError(
                f"Zone {self.name!r}: global face map has "
                f"{len(self.global_faces)} entries for {len(self.areas)} faces."
            )
        if self.n_global is None:
            self.n_global = len(self.areas)
        if len(self.global_faces) and self.global_faces.max() >= self.n_global:
            raise ValueError(
                f"Zone {self.name!r}: global face index out of range "
                f"(n_global={self.n_global})."
            )

    @classmethod
    def uniform(
        cls,
        name: str,
        n_faces: int,
        area: float = 1.0,
        normal: tuple[float, float, float] = (1.0, 0.0, 0.0),
    ) -> "FaceZone":
        """Zone of *n_faces* equal faces sharing one normal."""
        return cls(
            name=name,
            areas=np.full(n_faces, float(area)),
            normals=np.tile(np.asarray(normal, dtype=float), (n_faces, 1)),
        )

    @property
    def n_faces(self) -> int:
        """Number of faces owned by this process."""
        return len(self.areas)

    @property
    def area_vectors(self) -> np.ndarray:
        """Face area vectors ``A n``, shape ``(n_faces, 3)``."""
        return self.areas[:, np.newaxis] * self.normals

    def subset(self, faces: np.ndarray) -> "FaceZone":
        """Return the part of this zone made of the local *faces*.

        The result keeps the global numbering, which is how a
        decomposed case sees its share of the interface.
        """
        faces = np.asarray(faces, dtype=int)
        return FaceZone(
            name=self.name,
            areas=self.areas[faces],
            normals=self.normals[faces],
            global_faces=self.global_faces[faces],
            n_global=self.n_global,
        )

    def to_global(
        self,
        local_values: np.ndarray,
        comm: Communicator | None = None,
    ) -> np.ndarray:
        """Assemble the globally ordered zone field on every process.

        Args:
            local_values: Values on the local faces, shape
                ``(n_faces,)`` or ``(n_faces, k)``.
            comm: Communicator of the decomposition.

        Returns:
            Global field, shape ``(n_global,)`` or ``(n_global, k)``.
        """
        comm = comm or SerialCommunicator()
        local_values = np.asarray(local_values, dtype=float)
        if len(local_values) != self.n_faces:
            raise ValueError(
                f"Zone {self.name!r}: expected {self.n_faces} face values, "
                f"got {len(local_values)}."
            )
        full = np.zeros((self.n_global,) + local_values.shape[1:])
        full[self.global_faces] = local_values
        return comm.allreduce(full, "sum")

    def to_local(self, global_values: np.ndarray) -> np.ndarray:
        """Extract the values of the local faces from a global zone field."""
        global_values = np.asarray(global_values, dtype=float)
        if len(global_values) != self.n_global:
            raise ValueError(
                f"Zone {self.name!r}: expected {self.n_global} global values, "
                f"got {len(global_values)}."
            )
        return global_values[self.global_faces].copy()

    def __repr__(self) -> str:
        return (
            f"FaceZone(name={self.name!r}, n_faces={self.n_faces}, "
            f"n_global={self.n_global})"
        )


def heat_flow_rate(
    zone: FaceZone,
    heat_flux: np.ndarray,
    comm: Communicator | None = None,
) -> float:
    """Net heat flow rate across a zone (W).

    Scalar fluxes are taken as normal fluxes; vector fluxes are projected
    on the face normals.

    Args:
        zone: The local part of the zone.
        heat_flux: Local face heat flux, shape ``(n_faces,)`` or
            ``(n_faces, 3)`` (W/m²).
        comm: Communicator of the decomposition.

    Returns:
        ``sum(q_n * A)`` over the whole zone.
    """
    comm = comm or SerialCommunicator()
    q = np.asarray(heat_flux, dtype=float)
    if q.ndim == 2:
        q = np.einsum("ij,ij->i", q, zone.normals)
    return comm.allreduce(float(np.sum(q * zone.areas)), "sum")


def total_force(
    zone: FaceZone,
    traction: np.ndarray,
    comm: Communicator | None = None,
) -> np.ndarray:
    """Net force exerted by a traction field on a zone (N).

    Args:
        zone: The local part of the zone.
        traction: Local face traction, shape ``(n_faces, 3)`` (Pa).
        comm: Communicator of the decomposition.

    Returns:
        Force vector of shape ``(3,)``.
    """
    comm = comm or SerialCommunicator()
    t = np.asarray(traction, dtype=float).reshape(-1, 3)
    local = np.sum(t * zone.areas[:, np.newaxis], axis=0)
    return comm.allreduce(local, "sum")
