import os
import time
import logging as log

from functions import (compute_kinetic_energy, compute_total_momentum, elapsed_time, particle_buffer,
                       save_particles_npz, view_configuration)
from galaxy_classes import Population
from galaxy_generation_functions import generate_labelled
from simulation_config import (GALAXY_BULK_VELOCITY, GALAXY_COUNT, HEADLESS, LOG_FORMAT, LOG_LEVEL, MORPHOLOGY,
                               OUTPUT_DIR, PARTICLES_PER_GALAXY, SEED, SimParams)

def main():
    #Configure logging
    log.basicConfig(level=getattr(log, LOG_LEVEL), format=LOG_FORMAT)    # Formatting
    log.getLogger('matplotlib').setLevel(log.ERROR)                       # Silence Matplotlib

    #Track Time
    start_time = time.time()

    sim_params = SimParams(
        particle_count_per_galaxy=PARTICLES_PER_GALAXY,
        galaxy_count=GALAXY_COUNT,
        galaxy_bulk_velocity=GALAXY_BULK_VELOCITY,
    )
    particles, labels = generate_labelled(MORPHOLOGY, sim_params, SEED)
    log.info(f"Generated {len(particles)} particles in {elapsed_time(start_time):.2f} seconds")

    #Diagnostics
    satellites = labels != Population.Central.value
    KE = compute_kinetic_energy(particles["vel"][satellites], particles["mass"][satellites])
    momentum = compute_total_momentum(particles["vel"], particles["mass"])
    log.info(f"Kinetic energy (excluding centres): {KE:.4g}, total momentum: {momentum}")
    log.info(f"Upload buffer: {len(particle_buffer(particles))} bytes, "
             f"{sim_params.work_group_count} work groups of {sim_params.particles_per_group}")

    #Snapshot
    os.makedirs(OUTPUT_DIR, exist_ok=True)
    name = f"{MORPHOLOGY}_{GALAXY_COUNT}x{PARTICLES_PER_GALAXY}_{SEED}"
    save_particles_npz(os.path.join(OUTPUT_DIR, f"{name}.npz"), particles, labels)
    log.info(f"Snapshot written to {OUTPUT_DIR}/{name}.npz")

    #Visualisation
    if not HEADLESS:
        path = view_configuration(particles, labels, title=name, output_dir=OUTPUT_DIR)
        log.info(f"Preview written to {path}")

    print(f"Galaxy generation completed in {elapsed_time(start_time):.2f} seconds.")

if __name__ == "__main__":
    main()
