#!/usr/bin/env python3
"""
Benchmark script for Particle Lenia 3D - Reproducible Performance Testing
==========================================================================

Runs a fixed number of simulation steps with a deterministic seed and reports:
- Steps per second
- Time breakdown (fields, integrate, wrap)
- Configuration used

Usage:
    python scripts/bench.py [--steps N] [--particles N] [--arch cpu|gpu] [--exp-mode exact|fast]

Example:
    python scripts/bench.py --steps 200 --particles 500
"""

import sys
import os
import time
import argparse
import numpy as np

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import taichi as ti

from config import LeniaConfig, EXP_MODES
from errors import LeniaError
from particles import create_particles
from potential import compute_store_fields
from dynamics import integrate_velocities, integrate_positions
from boundary import wrap_store

ARCHS = {'cpu': ti.cpu, 'gpu': ti.gpu, 'cuda': ti.cuda, 'vulkan': ti.vulkan}


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Benchmark Particle Lenia performance')
    parser.add_argument('--steps', type=int, default=100,
                        help='Number of steps to run (default: 100)')
    parser.add_argument('--particles', type=int, default=200,
                        help='Number of particles (default: 200)')
    parser.add_argument('--seed', type=int, default=42,
                        help='Random seed for reproducibility (default: 42)')
    parser.add_argument('--arch', choices=sorted(ARCHS), default='cpu',
                        help='Taichi backend (default: cpu)')
    parser.add_argument('--exp-mode', choices=EXP_MODES, default='exact',
                        help='Exponential evaluation (default: exact)')
    return parser.parse_args()


def run_benchmark(args):
    """
    Run benchmark and collect performance statistics.

    Args:
        args: Parsed command line arguments

    Returns:
        Dictionary with benchmark results
    """
    print(f"\n{'='*70}")
    print(f"PARTICLE LENIA BENCHMARK")
    print(f"{'='*70}\n")

    config = LeniaConfig(particle_count=args.particles, seed=args.seed, exp_mode=args.exp_mode)

    print(f"Configuration:")
    print(f"  Particles:     {config.particle_count}")
    print(f"  Steps:         {args.steps}")
    print(f"  Seed:          {config.seed}")
    print(f"  Backend:       {args.arch}")
    print(f"  Exp mode:      {config.exp_mode}")
    print(f"  Pairs/step:    {config.particle_count * (config.particle_count - 1) // 2}")
    print(f"\n")

    ti.init(arch=ARCHS[args.arch], default_fp=ti.f64)

    print("Initializing simulation...")
    store = create_particles(config)
    n = store.n

    def fields():
        compute_store_fields(store, config)

    def integrate():
        integrate_velocities(store.vel, store.u_val, store.u_grad, store.r_grad, n,
                             config.mu_g, config.sigma_g, config.dt, config.damping,
                             config.fast_exp)
        integrate_positions(store.pos, store.vel, n, config.dt)

    def wrap():
        wrap_store(store, config)

    # Warm-up (first launches include JIT compilation)
    warmup_steps = 3
    for _ in range(warmup_steps):
        fields()
        integrate()
        wrap()
    ti.sync()
    print(f"Warm-up complete ({warmup_steps} steps)\n")

    times_fields = []
    times_integrate = []
    times_wrap = []

    print(f"Running {args.steps} steps...\n")
    start_time_total = time.perf_counter()

    for s in range(args.steps):
        t0 = time.perf_counter()
        fields()
        ti.sync()
        t1 = time.perf_counter()
        integrate()
        ti.sync()
        t2 = time.perf_counter()
        wrap()
        ti.sync()
        t3 = time.perf_counter()

        times_fields.append(t1 - t0)
        times_integrate.append(t2 - t1)
        times_wrap.append(t3 - t2)

        if (s + 1) % 25 == 0 or s == args.steps - 1:
            print(f"  Step {s+1:5d}/{args.steps}: {1.0 / (t3 - t0) if t3 > t0 else 0:8.1f} steps/s")

    total_time = time.perf_counter() - start_time_total
    avg_sps = args.steps / total_time if total_time > 0 else 0.0

    avg_fields = np.mean(times_fields)
    avg_integrate = np.mean(times_integrate)
    avg_wrap = np.mean(times_wrap)
    total_avg = avg_fields + avg_integrate + avg_wrap

    print(f"\n{'='*70}")
    print(f"BENCHMARK RESULTS")
    print(f"{'='*70}\n")

    print(f"Overall Performance:")
    print(f"  Steps/s:       {avg_sps:.2f}")
    print(f"  Total Time:    {total_time:.2f}s")
    print(f"\n")

    print(f"Time Breakdown (averages):")
    print(f"  Fields:        {avg_fields*1000:7.3f}ms  ({100*avg_fields/total_avg:5.1f}%)")
    print(f"  Integrate:     {avg_integrate*1000:7.3f}ms  ({100*avg_integrate/total_avg:5.1f}%)")
    print(f"  Wrap:          {avg_wrap*1000:7.3f}ms  ({100*avg_wrap/total_avg:5.1f}%)")
    print(f"\n")

    return {
        'steps_per_s': avg_sps,
        'total_time': total_time,
        'avg_fields_ms': avg_fields * 1000,
        'avg_integrate_ms': avg_integrate * 1000,
        'avg_wrap_ms': avg_wrap * 1000,
        'config': {
            'particles': config.particle_count,
            'steps': args.steps,
            'seed': config.seed,
            'arch': args.arch,
            'exp_mode': config.exp_mode,
        }
    }


def main():
    """Main entry point."""
    args = parse_args()
    try:
        run_benchmark(args)
    except LeniaError as e:
        print(f"[Error] {e}")
        return 1

    print(f"Benchmark complete!")
    print(f"{'='*70}\n")
    return 0


if __name__ == '__main__':
    sys.exit(main())
