import numpy as np
from time import time
from pbcnn import Crystal, timer

FCC_FRAC = np.array(
    [[0.0, 0.0, 0.0], [0.5, 0.5, 0.0], [0.5, 0.0, 0.5], [0.0, 0.5, 0.5]]
)


def fcc(a, n):
    shifts = np.stack(np.meshgrid(*[np.arange(n)] * 3, indexing="ij"), axis=-1).reshape(-1, 3)
    frac = (shifts[:, np.newaxis, :] + FCC_FRAC[np.newaxis, :, :]).reshape(-1, 3) / n
    return Crystal(a * n, frac=frac)


@timer
def neighbor_average_time(ave_num=3, rc=5.0, check=False):
    time_list = []
    print("*" * 30)
    for num in [3, 4, 5, 6]:
        crystal = fcc(3.615, num)
        print(f"Build {crystal.N} atoms...")
        grid_t, brute_t = 0.0, 0.0
        for turn in range(ave_num):
            print(f"Running {turn} turn...")
            start = time()
            grid = crystal.build_neighbor(rc, method="grid")
            grid_t += time() - start
            start = time()
            brute = crystal.build_neighbor(rc, method="brute")
            brute_t += time() - start
            if check:
                print(f"Checking results of {turn} turn...")
                assert len(grid) == len(brute)
        time_list.append([crystal.N, grid_t / ave_num, brute_t / ave_num])
        print("*" * 30)
    time_list = np.array(time_list)
    np.savetxt(
        "time_list_neighbor.txt",
        time_list,
        delimiter=" ",
        header="N grid brute",
    )
    return time_list


if __name__ == "__main__":
    neighbor_average_time(check=True)
