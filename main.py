# main.py
"""
Main entry point for the Spire simulation.

This script orchestrates the entire simulation lifecycle:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Sets up the window, the arena and its entities.
4. Runs the main loop, with independent update and render clocks.
5. Handles clean shutdown.
"""
import logging
import time
from utils import setup_logging, load_config
from constants import ARENA_MARGIN, UPDATE_TICK_MS, RENDER_TICK_MS
import cProfile
import pstats
import io

def main():
    """
    The main function to run the simulation.
    """
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config('config.json')
    except Exception as e:
        print(f"FATAL: Could not load config.json. Error: {e}")
        return

    setup_logging(config)

    logging.info("--- Spire Simulation Starting ---")

    sim_params = config.get('simulation_parameters', {})
    run_params = config.get('run_control', {})
    vis_params = config.get('visualization', {})

    from world import World
    from visualization import Visualizer

    # --- Component Initialization ---
    # 1. The visualizer decides the arena surface size.
    visualizer = Visualizer(vis_params, sim_params)

    # 2. The arena is the surface inset by the configured margin.
    bounds = visualizer.arena_bounds(sim_params.get('arena_margin', ARENA_MARGIN))
    world = World.from_config(sim_params, bounds)

    profiler = cProfile.Profile()

    log_throttle = run_params.get('log_throttle_steps', 100)
    max_steps = run_params.get('max_steps', 0) # 0 runs until the window is closed
    update_interval = run_params.get('update_tick_ms', UPDATE_TICK_MS) / 1000.0
    render_interval = run_params.get('render_tick_ms', RENDER_TICK_MS) / 1000.0

    running = True
    step_num = 0
    last_update = last_render = time.perf_counter()

    profiler.enable()
    while running:
        if not visualizer.poll_events():
            break

        now = time.perf_counter()
        if now - last_update >= update_interval:
            focus_point = visualizer.update_focus_point()
            if visualizer.follow_focus:
                world.set_entity_focus_point(
                    focus_point, visualizer.focus_inverse, visualizer.focal_strength
                )
            world.update(visualizer.color_mapping)
            last_update = now
            step_num += 1

            # Hot loops must throttle logs
            if step_num % log_throttle == 0:
                logging.info(f"Simulation step {step_num}")
                logging.debug(f"Step {step_num} | Average Speed: {world.average_speed():.4f}")

            if max_steps and step_num >= max_steps:
                logging.info(f"Reached max_steps ({max_steps}). Stopping simulation.")
                running = False

        if now - last_render >= render_interval:
            visualizer.draw(world)
            last_render = now
        else:
            time.sleep(0.001)
    profiler.disable()

    visualizer.close()
    logging.info("Simulation loop finished.")

    logging.info("--- Performance Profile ---")
    s = io.StringIO()
    # Sort by cumulative time spent in the function
    stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
    stats.print_stats(20)
    logging.info(f"\n{s.getvalue()}")

    logging.info("--- Spire Simulation Shutting Down ---")


if __name__ == "__main__":
    main()
