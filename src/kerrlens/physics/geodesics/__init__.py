from kerrlens.physics.geodesics.approximate import GeodesicIntegrator

__all__ = [
    "GeodesicIntegrator",
]
