from .poisson import estimate_radius, poisson_disk_sample, sample_points

__all__ = ["estimate_radius", "poisson_disk_sample", "sample_points"]
