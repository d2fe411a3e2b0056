"""
Main entry point for Particle Lenia 3D.

This script:
1. Parses run parameters and builds an immutable LeniaConfig
2. Initializes Taichi (fp64) and seeds particles
3. Runs the main loop: N steps per frame → telemetry → (optional) render

Headless by default; --gui opens a Taichi GGUI window.

Controls (--gui):
  - Right-click drag: Rotate camera
  - Mouse wheel / WASD: Move camera
  - SPACE: Pause/Resume
  - R: Reset particles (new random seed draw)
  - ESC: Exit

Usage:
    python run.py --frames 200
    python run.py --gui --particles 300 --exp-mode fast
"""

import sys
import time
import argparse

import numpy as np
import taichi as ti

from config import (
    LeniaConfig, PARTICLE_COUNT, WORLD_SIZE, INITIAL_SPREAD,
    STEPS_PER_FRAME, EXP_MODE, EXP_MODES,
)
from errors import LeniaError
from simulation import Simulation

ARCHS = {'cpu': ti.cpu, 'gpu': ti.gpu, 'cuda': ti.cuda, 'vulkan': ti.vulkan}

PARTICLE_RENDER_SIZE = 0.1   # Sphere radius in world units (viewer only)
REPORT_EVERY = 20            # Frames between console telemetry lines


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Particle Lenia 3D')
    parser.add_argument('--particles', type=int, default=PARTICLE_COUNT,
                        help=f'Number of particles (default: {PARTICLE_COUNT})')
    parser.add_argument('--world-size', type=float, default=WORLD_SIZE,
                        help=f'Periodic cube side length (default: {WORLD_SIZE})')
    parser.add_argument('--spread', type=float, default=INITIAL_SPREAD,
                        help=f'Initial placement cube side length (default: {INITIAL_SPREAD})')
    parser.add_argument('--steps', type=int, default=STEPS_PER_FRAME,
                        help=f'Simulation steps per frame (default: {STEPS_PER_FRAME})')
    parser.add_argument('--frames', type=int, default=100,
                        help='Frames to run headless (default: 100, ignored with --gui)')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for initial placement')
    parser.add_argument('--exp-mode', choices=EXP_MODES, default=EXP_MODE,
                        help=f'Exponential evaluation (default: {EXP_MODE})')
    parser.add_argument('--arch', choices=sorted(ARCHS), default='cpu',
                        help='Taichi backend; needs fp64 support (default: cpu)')
    parser.add_argument('--gui', action='store_true',
                        help='Open a GGUI window instead of running headless')
    parser.add_argument('--export', type=str, default=None,
                        help='Save final positions to this .npy file')
    return parser.parse_args(argv)


def build_config(args):
    return LeniaConfig(
        particle_count=args.particles,
        world_size=args.world_size,
        initial_spread=args.spread,
        steps_per_frame=args.steps,
        exp_mode=args.exp_mode,
        seed=args.seed,
    )


def report(sim, t_frame):
    mean_u, mean_g, max_speed = sim.stats()
    sps = sim.config.steps_per_frame / t_frame if t_frame > 0 else 0.0
    print(f"[Frame {sim.frame:4d}] steps={sim.step_count} U̅={mean_u:.4f} "
          f"G̅={mean_g:.4f} |v|max={max_speed:.4f} | {sps:.1f} steps/s")


def run_headless(sim, frames):
    for _ in range(frames):
        t0 = time.perf_counter()
        sim.advance_frame()
        ti.sync()
        t_frame = time.perf_counter() - t0
        if sim.frame % REPORT_EVERY == 0 or sim.frame == frames:
            report(sim, t_frame)


def run_gui(sim):
    """GGUI viewer. Owns its own f32 render buffer, indexed like the store."""
    config = sim.config
    pos_render = ti.Vector.field(3, dtype=ti.f32, shape=max(config.particle_count, 1))

    window = ti.ui.Window("Particle Lenia 3D", (1024, 768), vsync=True)
    canvas = window.get_canvas()
    scene = window.get_scene()
    camera = ti.ui.Camera()

    camera.position(0.0, 0.0, config.world_size / 1.5)
    camera.lookat(0.0, 0.0, 0.0)
    camera.up(0, 1, 0)

    print("\n" + "=" * 70)
    print("PARTICLE LENIA 3D")
    print("=" * 70)
    print("Controls:")
    print("  - Right-click + drag: Rotate camera")
    print("  - Mouse wheel / WASD: Move camera")
    print("  - SPACE: Pause/Resume")
    print("  - R: Reset particles")
    print("  - ESC: Exit")
    print("=" * 70 + "\n")

    while window.running:
        if window.get_event(ti.ui.PRESS):
            if window.event.key == ti.ui.SPACE:
                sim.toggle_pause()
            elif window.event.key in ('r', 'R'):
                print("[Control] Resetting simulation...")
                sim.reset()
            elif window.event.key == ti.ui.ESCAPE:
                break

        t0 = time.perf_counter()
        if sim.advance_frame():
            t_frame = time.perf_counter() - t0
            if sim.frame % REPORT_EVERY == 0:
                report(sim, t_frame)

        # Render
        buf = np.zeros((pos_render.shape[0], 3), dtype=np.float32)
        buf[:sim.store.n] = sim.positions()
        pos_render.from_numpy(buf)

        camera.track_user_inputs(window, movement_speed=0.05, hold_key=ti.ui.RMB)
        scene.set_camera(camera)
        scene.ambient_light((0.5, 0.5, 0.5))
        scene.point_light(pos=(config.world_size, config.world_size, config.world_size),
                          color=(0.8, 0.8, 0.8))
        if sim.store.n > 0:
            scene.particles(pos_render, radius=PARTICLE_RENDER_SIZE, color=(1.0, 1.0, 1.0))
        canvas.set_background_color((0.0, 0.0, 0.0))
        canvas.scene(scene)
        window.show()


def export_positions(sim, path):
    np.save(path, np.asarray(sim.positions()))
    print(f"[Export] Saved {sim.store.n} positions to {path}")


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    ti.init(arch=ARCHS[args.arch], default_fp=ti.f64)
    print(f"[Taichi] Initialized with backend: {ti.cfg.arch}")

    try:
        config = build_config(args)
        print(f"[Config] {config.summary()}")
        sim = Simulation(config, verbose=True)

        if args.gui:
            run_gui(sim)
        else:
            run_headless(sim, args.frames)

        if args.export:
            export_positions(sim, args.export)
    except LeniaError as e:
        print(f"[Error] {e}")
        return 1

    print("\n[Exit] Simulation ended.")
    print(f"       Total frames: {sim.frame}")
    print(f"       Total steps:  {sim.step_count}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
