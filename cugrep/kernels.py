"""
Match kernels.

The per-line matching code is written once as plain Python and compiled for
two targets: as CUDA device functions (one thread per lane, numba.cuda) and
as numba nopython functions for the CPU backend, which walks the lanes one
after another. Only the slot reservation differs: CUDA uses an atomic
fetch-and-add on the shared counter, the CPU loop a plain increment.

Each lane:
  1. scans back from its raw cursor to the start of the line containing it,
  2. walks forward line by line,
  3. reports a line only if the line's terminator lies inside the lane's own
     [cursor, bound) interval, so a line cut by a lane boundary is reported
     once, by the lane that holds its newline.

Kernel arguments (both targets):
    data            uint8 window bytes (device scratch, may be larger than size)
    size            bytes of data that belong to the window
    lanes           active lane count
    bytes_per_lane  lane stride
    base            absolute file offset of data[0]
    pattern, plen   literal bytes and true length
    policy          AnchorPolicy value
    fold, invert    case-insensitive / inverted matching
    records         int64[capacity, 2] match records
    counter         uint32[1] match counter
"""

from numba import cuda, njit

NEWLINE = 10

CONTAINS = 0
PREFIX = 1
SUFFIX = 2

# 'a' - 'A'
CASE_DISTANCE = 32


def _build_matchers(jit):
    @jit
    def match_at(data, pos, line_end, pattern, plen, fold):
        if pos + plen > line_end:
            return False
        for k in range(plen):
            d = data[pos + k]
            p = pattern[k]
            if d != p:
                if not fold or p < 97 or p > 122 or d != p - CASE_DISTANCE:
                    return False
        return True

    @jit
    def line_matches(data, start, end, pattern, plen, policy, fold, invert):
        found = False
        if policy == PREFIX:
            found = match_at(data, start, end, pattern, plen, fold)
        elif policy == SUFFIX:
            if end - start >= plen:
                found = match_at(data, end - plen, end, pattern, plen, fold)
        else:
            pos = start
            while not found and pos + plen <= end:
                found = match_at(data, pos, end, pattern, plen, fold)
                pos += 1
        if invert:
            return not found
        return found

    return match_at, line_matches


def _build_lane_scanner(jit, line_matches, reserve_slot):
    @jit
    def scan_lane(data, size, cursor, bound, base, pattern, plen, policy,
                  fold, invert, records, counter):
        if cursor >= size:
            return
        capacity = records.shape[0]

        start = cursor
        while start > 0 and data[start - 1] != NEWLINE:
            start -= 1

        while start < size:
            end = start
            while end < size and data[end] != NEWLINE:
                end += 1

            # The unterminated tail of the window belongs to the last lane.
            owned = end < bound or (end == size and bound == size)
            if not owned:
                return

            if line_matches(data, start, end, pattern, plen, policy, fold, invert):
                slot = reserve_slot(counter)
                if slot < capacity:
                    records[slot, 0] = base + start
                    records[slot, 1] = base + end

            if end >= bound:
                return
            start = end + 1

    return scan_lane


@cuda.jit(device=True)
def _reserve_slot_cuda(counter):
    return cuda.atomic.add(counter, 0, 1)


@njit
def _reserve_slot_cpu(counter):
    slot = counter[0]
    counter[0] = slot + 1
    return slot


match_at_cuda, line_matches_cuda = _build_matchers(cuda.jit(device=True))
match_at_cpu, line_matches_cpu = _build_matchers(njit)

_scan_lane_cuda = _build_lane_scanner(cuda.jit(device=True), line_matches_cuda, _reserve_slot_cuda)
_scan_lane_cpu = _build_lane_scanner(njit, line_matches_cpu, _reserve_slot_cpu)


@cuda.jit
def search_kernel(data, size, lanes, bytes_per_lane, base, pattern, plen,
                  policy, fold, invert, records, counter):
    """One thread per lane."""
    lane = cuda.grid(1)
    if lane >= lanes:
        return
    cursor = lane * bytes_per_lane
    bound = min(cursor + bytes_per_lane, size)
    _scan_lane_cuda(data, size, cursor, bound, base, pattern, plen, policy,
                    fold, invert, records, counter)


@njit
def search_lanes_cpu(data, size, lanes, bytes_per_lane, base, pattern, plen,
                     policy, fold, invert, records, counter):
    """Same lane decomposition as search_kernel, executed sequentially."""
    for lane in range(lanes):
        cursor = lane * bytes_per_lane
        bound = min(cursor + bytes_per_lane, size)
        _scan_lane_cpu(data, size, cursor, bound, base, pattern, plen, policy,
                       fold, invert, records, counter)
