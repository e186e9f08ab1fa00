from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from kerrlens.math_utils import normalize_batch
from kerrlens.physics.geodesics import GeodesicIntegrator
from kerrlens.raymarch.config import IntegratorConfig, MarchResult, RayState, RayTrace
from kerrlens.scene import DiskVolumeConfig, SceneSampler
from kerrlens.shading.disk import DiskShader

if TYPE_CHECKING:
    from kerrlens.backend import ArrayModule
    from kerrlens.config import ParameterSet

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IntegrationState:
    """Mutable per-ray state of a batch of N rays.

    p, d: (N, 3) position and unit direction
    v: (N, 3) integrated tangent, unit at launch, speeds up near the hole
    d0: (N, 3) launch direction
    h2: (N,) squared angular momentum |p0 x d0|^2, fixed at launch
    state: (N,) int8 RayState codes
    color: (N, 3) accumulated disk emission
    opacity: (N,) remaining transmittance, non-increasing
    min_radius: (N,) closest approach so far
    steps: (N,) steps taken
    """

    p: Any
    d: Any
    v: Any
    d0: Any
    h2: Any
    state: Any
    color: Any
    opacity: Any
    min_radius: Any
    steps: Any


class GeodesicMarcher:
    """Fixed-budget ray integration through the black hole scene.

    Each step evaluates, in order, for every ACTIVE ray:
      1. r < capture radius  -> ABSORBED
      2. r > escape radius   -> ESCAPED
      3. inside the disk     -> accumulate shaded emission, attenuate opacity
      4. advance one fixed step along the approximate geodesic
    Rays still ACTIVE when the budget runs out become BUDGET_EXHAUSTED, which
    shades exactly like ESCAPED.
    """

    def __init__(
            self,
            xp: ArrayModule,
            config: IntegratorConfig | None = None,
            shader: DiskShader | None = None,
            volume: DiskVolumeConfig | None = None,
    ) -> None:
        """Initialise the marcher."""
        self.xp = xp
        self.cfg = config if config is not None else IntegratorConfig()
        self.shader = shader if shader is not None else DiskShader(xp)
        self.volume = volume if volume is not None else DiskVolumeConfig()

    def build(self, params: ParameterSet) -> tuple[GeodesicIntegrator, SceneSampler]:
        """Per-frame integrator and scene sampler for a parameter snapshot."""
        integrator = GeodesicIntegrator.from_parameters(self.xp, params, self.cfg)
        sampler = SceneSampler.from_parameters(self.xp, params, self.cfg, self.volume)
        return integrator, sampler

    def _init_state(self, integrator: GeodesicIntegrator, origins: Any, directions: Any) -> IntegrationState:
        xp = self.xp
        p = xp.asarray(origins, dtype=xp.float64).reshape(-1, 3)
        d = normalize_batch(xp, xp.asarray(directions, dtype=xp.float64).reshape(-1, 3))
        if p.shape[0] == 1 and d.shape[0] > 1:
            p = xp.broadcast_to(p, d.shape)
        p = p.copy()
        n = d.shape[0]

        return IntegrationState(
            p=p,
            d=d,
            v=d.copy(),
            d0=d.copy(),
            h2=integrator.angular_momentum_sq(p, d),
            state=xp.full(n, int(RayState.ACTIVE), dtype=xp.int8),
            color=xp.zeros((n, 3), dtype=xp.float64),
            opacity=xp.ones(n, dtype=xp.float64),
            min_radius=xp.full(n, xp.inf, dtype=xp.float64),
            steps=xp.zeros(n, dtype=xp.int32),
        )

    def _step(
            self,
            s: IntegrationState,
            integrator: GeodesicIntegrator,
            sampler: SceneSampler,
            params: ParameterSet,
            time: float,
    ) -> bool:
        """Run one state-machine step; return True while any ray is ACTIVE."""
        xp = self.xp
        ds = self.cfg.step_size

        active = s.state == int(RayState.ACTIVE)
        r = sampler.radius(s.p)
        s.min_radius = xp.where(active, xp.minimum(s.min_radius, r), s.min_radius)

        absorbed = active & sampler.captured(r)
        s.state = xp.where(absorbed, int(RayState.ABSORBED), s.state).astype(xp.int8)
        active = active & ~absorbed

        escaped = active & sampler.escaped(r)
        s.state = xp.where(escaped, int(RayState.ESCAPED), s.state).astype(xp.int8)
        active = active & ~escaped

        idx = xp.nonzero(active)[0]
        if idx.size == 0:
            return False

        p = s.p[idx]
        density = sampler.disk_density(p)
        inside = density > 0.0
        if bool(xp.any(inside)):
            hit = idx[inside]
            dens = density[inside]
            emission = self.shader.shade(p[inside], params, time)
            s.color[hit] += (dens * s.opacity[hit] * ds)[:, None] * emission
            s.opacity[hit] *= xp.exp(-self.cfg.absorption * dens * ds)

        p_next, v_next = integrator.step(p, s.v[idx], s.h2[idx])
        s.p[idx] = p_next
        s.v[idx] = v_next
        s.d[idx] = integrator.direction(v_next)
        s.steps[idx] += 1
        return True

    def _finish(self, s: IntegrationState) -> None:
        xp = self.xp
        still_active = s.state == int(RayState.ACTIVE)
        s.state = xp.where(still_active, int(RayState.BUDGET_EXHAUSTED), s.state).astype(xp.int8)
        s.min_radius = xp.minimum(s.min_radius, xp.sqrt(xp.sum(s.p * s.p, axis=-1)))

    def march(self, origins: Any, directions: Any, params: ParameterSet, time: float = 0.0) -> MarchResult:
        """March a batch of rays to termination.

        origins: (N, 3) or (3,) shared origin
        directions: (N, 3)
        params: sanitized parameter snapshot, constant for the whole call
        """
        xp = self.xp
        integrator, sampler = self.build(params)
        s = self._init_state(integrator, origins, directions)

        for _ in range(int(self.cfg.max_steps)):
            if not self._step(s, integrator, sampler, params, time):
                break
        self._finish(s)

        if logger.isEnabledFor(logging.DEBUG):
            counts = {state.name: int(xp.sum(s.state == int(state))) for state in RayState}
            logger.debug("march finished: %s", counts)

        return MarchResult(
            state=s.state,
            position=s.p,
            direction=s.d,
            color=s.color,
            opacity=s.opacity,
            min_radius=s.min_radius,
            steps=s.steps,
            initial_direction=s.d0,
        )

    def trace(self, origin: Any, direction: Any, params: ParameterSet, time: float = 0.0) -> RayTrace:
        """Trace one ray and keep its polyline (debug plots, tests)."""
        xp = self.xp
        integrator, sampler = self.build(params)
        s = self._init_state(integrator, origin, direction)

        points: list[Any] = [s.p[0].copy()]
        for _ in range(int(self.cfg.max_steps)):
            if not self._step(s, integrator, sampler, params, time):
                break
            points.append(s.p[0].copy())
        self._finish(s)

        return RayTrace(
            state=RayState(int(s.state[0])),
            points=xp.stack(points),
            color=s.color[0],
            opacity=float(s.opacity[0]),
            min_radius=float(s.min_radius[0]),
            final_direction=s.d[0],
        )
